"""Shared pytest fixtures and configuration."""

import itertools
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from backend.app import create_app
from backend.guard import ACCESS_TOKEN_COOKIE
from models.config_models import Config, CredentialsConfig
from models.data_models import AuthUser, DashboardStats, FlavorStep, HumorFlavor, Profile
from storage.supabase_client import StoreError


class InMemoryStore:
    """
    In-memory stand-in for SupabaseClient.

    Records every call in `calls` so tests can check what was (or wasn't)
    fetched, and raises StoreError for any method named in `fail_on`.
    """

    def __init__(self):
        self.flavors: Dict[str, Dict[str, Any]] = {}
        self.steps: Dict[str, Dict[str, Any]] = {}
        self.sessions: Dict[str, AuthUser] = {}
        self.profiles: Dict[str, Profile] = {}
        self.passwords: Dict[str, str] = {}
        self.stats = DashboardStats()
        self.calls: List[tuple] = []
        self.fail_on: set = set()
        self._ids = itertools.count(1)

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise StoreError(f"{name} failed")

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]

    # Seeding helpers (not recorded)

    def add_user(self, token: str, user_id: str, email: str, is_superadmin: bool, password: str = "secret"):
        self.sessions[token] = AuthUser(id=user_id, email=email)
        self.profiles[user_id] = Profile(id=user_id, email=email, is_superadmin=is_superadmin)
        self.passwords[email] = password

    def add_flavor(self, name: str, description: str = "") -> HumorFlavor:
        flavor_id = f"f{next(self._ids)}"
        self.flavors[flavor_id] = {"id": flavor_id, "name": name, "description": description}
        return HumorFlavor(**self.flavors[flavor_id])

    def add_step(self, flavor_id: str, step_number: int, instruction: str) -> FlavorStep:
        step_id = f"s{next(self._ids)}"
        self.steps[step_id] = {
            "id": step_id,
            "flavor_id": flavor_id,
            "step_number": step_number,
            "instruction": instruction,
        }
        return FlavorStep(**self.steps[step_id])

    # Identity

    def get_current_user(self, access_token: str) -> Optional[AuthUser]:
        self.calls.append(("get_current_user", access_token))
        if "get_current_user" in self.fail_on:
            return None
        return self.sessions.get(access_token)

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        self._call("sign_in", email)
        if self.passwords.get(email) != password:
            raise StoreError("Invalid login credentials")
        token = next(t for t, u in self.sessions.items() if u.email == email)
        return {"access_token": token, "refresh_token": "refresh", "user": self.sessions[token]}

    def sign_out(self, access_token: str) -> None:
        self._call("sign_out", access_token)

    def get_profile(self, user_id: str) -> Profile:
        self._call("get_profile", user_id)
        if user_id not in self.profiles:
            raise StoreError(f"Profile not found: {user_id}")
        return self.profiles[user_id]

    def get_dashboard_stats(self, recent_days: int = 7) -> DashboardStats:
        self._call("get_dashboard_stats", recent_days)
        return self.stats

    # Flavors

    def list_flavors(self) -> List[HumorFlavor]:
        self._call("list_flavors")
        rows = sorted(self.flavors.values(), key=lambda r: r["name"])
        return [HumorFlavor(**r) for r in rows]

    def insert_flavor(self, name: str, description: str) -> HumorFlavor:
        self._call("insert_flavor", name, description)
        return self.add_flavor(name, description)

    def update_flavor(self, flavor_id: str, fields: Dict[str, Any]) -> HumorFlavor:
        self._call("update_flavor", flavor_id, fields)
        self.flavors[flavor_id].update(fields)
        return HumorFlavor(**self.flavors[flavor_id])

    def delete_flavor(self, flavor_id: str) -> None:
        self._call("delete_flavor", flavor_id)
        self.flavors.pop(flavor_id, None)

    def delete_flavor_cascade(self, flavor_id: str) -> None:
        self._call("delete_flavor_cascade", flavor_id)
        self.delete_steps_by_flavor(flavor_id)
        self.delete_flavor(flavor_id)

    # Steps

    def list_steps_by_flavor(self, flavor_id: str) -> List[FlavorStep]:
        self._call("list_steps_by_flavor", flavor_id)
        rows = [r for r in self.steps.values() if r["flavor_id"] == flavor_id]
        return [FlavorStep(**r) for r in sorted(rows, key=lambda r: r["step_number"])]

    def insert_step(self, flavor_id: str, step_number: int, instruction: str) -> FlavorStep:
        self._call("insert_step", flavor_id, step_number, instruction)
        return self.add_step(flavor_id, step_number, instruction)

    def update_step(self, step_id: str, fields: Dict[str, Any]) -> FlavorStep:
        self._call("update_step", step_id, fields)
        self.steps[step_id].update(fields)
        return FlavorStep(**self.steps[step_id])

    def delete_step(self, step_id: str) -> None:
        self._call("delete_step", step_id)
        self.steps.pop(step_id, None)

    def delete_steps_by_flavor(self, flavor_id: str) -> None:
        self._call("delete_steps_by_flavor", flavor_id)
        for step_id in [k for k, r in self.steps.items() if r["flavor_id"] == flavor_id]:
            del self.steps[step_id]


@pytest.fixture
def test_env(monkeypatch):
    """
    Set valid test environment variables.

    Lets load_config() run during tests without real credentials.
    """
    monkeypatch.setenv("SUPABASE_URL", "https://test-project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "test_supabase_key_1234567890")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("RECENT_USERS_DAYS", "14")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:5173, https://admin.example.com")

    return {
        "supabase_url": "https://test-project.supabase.co",
        "supabase_key": "test_supabase_key_1234567890",
        "log_level": "DEBUG",
    }


@pytest.fixture
def invalid_env(monkeypatch):
    """
    Set up invalid/missing environment variables for testing validation.
    """
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")


@pytest.fixture
def config():
    return Config(
        credentials=CredentialsConfig(
            supabase_url="https://test-project.supabase.co",
            supabase_key="test_supabase_key_1234567890",
        ),
        log_level="DEBUG",
    )


@pytest.fixture
def store():
    """Store with one superadmin (admin-token) and one regular user (user-token)."""
    s = InMemoryStore()
    s.add_user("admin-token", "u-admin", "admin@example.com", is_superadmin=True)
    s.add_user("user-token", "u-user", "user@example.com", is_superadmin=False)
    return s


@pytest.fixture
def client(config, store):
    """TestClient without a session cookie."""
    app = create_app(config=config, store=store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    """TestClient signed in as a superadmin."""
    client.cookies.set(ACCESS_TOKEN_COOKIE, "admin-token")
    return client


@pytest.fixture
def user_client(client):
    """TestClient signed in as a user without superadmin privileges."""
    client.cookies.set(ACCESS_TOKEN_COOKIE, "user-token")
    return client
