"""Data models for the humor flavor admin console."""

from models.config_models import Config, CredentialsConfig
from models.data_models import (
    AdminContext,
    AuthUser,
    DashboardStats,
    FlavorForm,
    FlavorStep,
    HumorFlavor,
    OperationResult,
    Profile,
    StepForm,
)

__all__ = [
    "Config",
    "CredentialsConfig",
    "AdminContext",
    "AuthUser",
    "DashboardStats",
    "FlavorForm",
    "FlavorStep",
    "HumorFlavor",
    "OperationResult",
    "Profile",
    "StepForm",
]
