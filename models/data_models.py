"""Data models for profiles, humor flavors and their steps."""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """Base for rows read from Supabase.

    Unknown columns are ignored and numeric IDs are coerced to strings so
    IDs coming from forms and from the store compare equal.
    """
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class AuthUser(Record):
    """User as returned by Supabase auth."""
    id: str
    email: Optional[str] = None


class Profile(Record):
    """Row of the profiles table. Read-only from the console."""
    id: str
    email: Optional[str] = None
    is_superadmin: bool = False
    created_at: Optional[datetime] = None


class HumorFlavor(Record):
    """A named category of humor grouping an ordered set of steps."""
    id: str
    name: str
    description: Optional[str] = ""
    created_at: Optional[datetime] = None


class FlavorStep(Record):
    """One ordered instruction within a flavor."""
    id: str
    flavor_id: str
    step_number: int
    instruction: str
    created_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    """Aggregate counts shown on the dashboard."""
    total_users: int = 0
    total_images: int = 0
    total_captions: int = 0
    total_votes: int = 0
    superadmins: int = 0
    recent_users: int = 0


class AdminContext(BaseModel):
    """Identity resolved by the access guard for the current request."""
    user: AuthUser
    profile: Profile


class FlavorForm(BaseModel):
    """State of the create/edit flavor form."""
    open: bool = False
    editing_id: Optional[str] = None
    name: str = ""
    description: str = ""


class StepForm(BaseModel):
    """State of the create/edit step form.

    step_number is kept as entered so an unparseable value can be shown
    back to the user alongside the validation message.
    """
    open: bool = False
    editing_id: Optional[str] = None
    step_number: Any = 1
    instruction: str = ""


class OperationResult(BaseModel):
    """Outcome of a manager operation."""
    status: Literal["success", "validation_error", "backend_error"]
    message: str = ""
    data: Optional[Any] = Field(default=None, exclude=True)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, message: str = "", data: Any = None) -> "OperationResult":
        return cls(status="success", message=message, data=data)

    @classmethod
    def invalid(cls, message: str) -> "OperationResult":
        return cls(status="validation_error", message=message)

    @classmethod
    def failed(cls, message: str) -> "OperationResult":
        return cls(status="backend_error", message=message)
