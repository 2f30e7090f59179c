"""
Access guard for admin routes.

Resolves the caller's identity once per request and checks the superadmin
flag before any handler runs. Protected routers declare it as a router-level
dependency; the resulting AdminContext is stored on request.state.admin.
"""

from typing import Final, Optional

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from models.data_models import AdminContext
from storage.supabase_client import StoreError, SupabaseClient
from utils.logger import setup_logger

logger = setup_logger(name=__name__)

ACCESS_TOKEN_COOKIE: Final[str] = "sb-access-token"
LOGIN_PATH: Final[str] = "/login"
UNAUTHORIZED_PATH: Final[str] = "/unauthorized"

_bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticationRequired(Exception):
    """No valid session: the caller must log in."""


class NotAuthorized(Exception):
    """Authenticated, but not a superadmin (or the profile couldn't be read)."""


def get_store(request: Request) -> SupabaseClient:
    """Return the store the app was created with."""
    return request.app.state.store


def extract_access_token(
    request: Request,
    bearer: Optional[HTTPAuthorizationCredentials] = None
) -> Optional[str]:
    """Read the access token from a Bearer header or the session cookie."""
    if bearer is not None and bearer.credentials:
        return bearer.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def require_superadmin(
    request: Request,
    store: SupabaseClient = Depends(get_store),
    bearer: Optional[HTTPAuthorizationCredentials] = Security(_bearer_scheme),
) -> AdminContext:
    """
    Require a signed-in superadmin.

    Raises:
        AuthenticationRequired: no token, or the auth service rejects it
        NotAuthorized: profile fetch failed or is_superadmin is false
    """
    token = extract_access_token(request, bearer)
    if not token:
        logger.info(f"No session for {request.url.path}")
        raise AuthenticationRequired()

    user = store.get_current_user(token)
    if user is None:
        logger.info(f"Invalid or expired session for {request.url.path}")
        raise AuthenticationRequired()

    try:
        profile = store.get_profile(user.id)
    except StoreError as e:
        logger.warning(f"Denied {user.email or user.id} on {request.url.path}: {e}")
        raise NotAuthorized() from e

    if not profile.is_superadmin:
        logger.warning(f"Denied non-superadmin {user.email or user.id} on {request.url.path}")
        raise NotAuthorized()

    context = AdminContext(user=user, profile=profile)
    request.state.admin = context
    return context


def wants_json(request: Request) -> bool:
    """API callers get status codes instead of redirects."""
    return request.url.path.startswith("/api")
