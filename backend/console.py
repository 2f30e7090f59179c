"""
Server-rendered console pages.

public_router holds the session pages (login, logout, unauthorized).
router holds the superadmin pages; its router-level guard runs before any
handler, so no data is fetched for visitors who aren't allowed in.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from backend.guard import (
    ACCESS_TOKEN_COOKIE,
    LOGIN_PATH,
    get_store,
    require_superadmin,
)
from flavors.manager import FlavorStepManager
from models.data_models import OperationResult
from storage.supabase_client import StoreError, SupabaseClient
from utils.logger import setup_logger

logger = setup_logger(name=__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

FLAVORS_PATH = "/admin/humor-flavors"

# Links shown on the dashboard; only the flavor manager lives in this app
MANAGEMENT_LINKS = [
    {"title": "Manage Users", "description": "View and manage user profiles and permissions", "href": "/admin/users"},
    {"title": "Manage Images", "description": "View and moderate uploaded images", "href": "/admin/images"},
    {"title": "Manage Captions", "description": "View and edit generated captions", "href": "/admin/captions"},
    {"title": "Manage Humor Flavors", "description": "Create and edit humor flavors and their steps", "href": FLAVORS_PATH},
]

public_router = APIRouter(tags=["console"])
router = APIRouter(tags=["console"], dependencies=[Depends(require_superadmin)])


def _flash_from_request(request: Request) -> Optional[Dict[str, str]]:
    msg = request.query_params.get("msg")
    if not msg:
        return None
    kind = request.query_params.get("kind") or ""
    return {"message": msg, "kind": kind}


def _flash_from_result(result: OperationResult) -> Dict[str, str]:
    return {"message": result.message, "kind": "ok" if result.ok else "bad"}


def _status_for(result: OperationResult) -> int:
    if result.status == "validation_error":
        return 400
    if result.status == "backend_error":
        return 502
    return 200


def _flavors_url(flavor_id: Optional[str] = None, **params: Any) -> str:
    query = {}
    if flavor_id:
        query["flavor"] = flavor_id
    query.update({k: v for k, v in params.items() if v})
    return f"{FLAVORS_PATH}?{urlencode(query)}" if query else FLAVORS_PATH


def _confirmed(value: str) -> bool:
    return (value or "").strip().lower() in {"yes", "true", "1"}


# ============================================================================
# Session pages
# ============================================================================

@public_router.get("/login", response_class=HTMLResponse)
def login_page(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {"title": "Login", "flash": _flash_from_request(request)},
    )


@public_router.post("/login", response_model=None)
def login_submit(
    request: Request,
    email: str = Form(default=""),
    password: str = Form(default=""),
    store: SupabaseClient = Depends(get_store),
) -> Response:
    email = email.strip()
    if not email or not password:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"title": "Login", "email": email, "error": "Email and password are required"},
            status_code=400,
        )

    try:
        session = store.sign_in(email, password)
    except StoreError:
        return templates.TemplateResponse(
            request,
            "login.html",
            {"title": "Login", "email": email, "error": "Invalid email or password"},
            status_code=401,
        )

    config = request.app.state.config
    resp = RedirectResponse(url="/", status_code=303)
    resp.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session["access_token"],
        httponly=True,
        samesite="lax",
        secure=config.cookie_secure,
    )
    return resp


@public_router.post("/logout")
def logout(request: Request, store: SupabaseClient = Depends(get_store)) -> RedirectResponse:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        try:
            store.sign_out(token)
        except StoreError:
            # The cookie is dropped regardless; the token expires on its own
            logger.warning("Session revoke failed during logout")

    resp = RedirectResponse(url=f"{LOGIN_PATH}?{urlencode({'msg': 'Logged out'})}", status_code=303)
    resp.delete_cookie(ACCESS_TOKEN_COOKIE)
    return resp


@public_router.get("/unauthorized", response_class=HTMLResponse)
def unauthorized_page(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "unauthorized.html",
        {"title": "Access Denied"},
        status_code=403,
    )


# ============================================================================
# Dashboard
# ============================================================================

@router.get("/", response_class=HTMLResponse)
def dashboard(request: Request, store: SupabaseClient = Depends(get_store)) -> HTMLResponse:
    config = request.app.state.config
    stats = store.get_dashboard_stats(recent_days=config.recent_users_days)
    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "title": "Admin Dashboard",
            "admin": request.state.admin,
            "stats": stats,
            "recent_days": config.recent_users_days,
            "links": MANAGEMENT_LINKS,
        },
    )


# ============================================================================
# Humor flavors
# ============================================================================

def _build_manager(
    store: SupabaseClient,
    flavor_id: Optional[str] = None
) -> Tuple[FlavorStepManager, Optional[OperationResult]]:
    """Load the flavor list and select a flavor; returns the first failure, if any."""
    manager = FlavorStepManager(store)
    result = manager.load_flavors()
    if not result.ok:
        return manager, result
    if flavor_id:
        result = manager.select_flavor(flavor_id)
        if not result.ok:
            return manager, result
    return manager, None


def _render_flavors(
    request: Request,
    manager: FlavorStepManager,
    result: Optional[OperationResult] = None,
) -> HTMLResponse:
    flash = _flash_from_result(result) if result else _flash_from_request(request)
    return templates.TemplateResponse(
        request,
        "humor_flavors.html",
        {
            "title": "Manage Humor Flavors",
            "admin": request.state.admin,
            "manager": manager,
            "flash": flash,
        },
        status_code=_status_for(result) if result else 200,
    )


@router.get(FLAVORS_PATH, response_class=HTMLResponse)
def flavors_page(request: Request, store: SupabaseClient = Depends(get_store)) -> HTMLResponse:
    """
    Master-detail page.

    Query Parameters:
    - flavor: ID of the selected flavor
    - new_flavor / edit_flavor: open the flavor form (empty / for that ID)
    - new_step / edit_step: open the step form (empty / for that ID)
    - msg, kind: flash message from a previous redirect
    """
    params = request.query_params
    manager, error = _build_manager(store, params.get("flavor"))
    if error:
        return _render_flavors(request, manager, error)

    result = None
    if params.get("edit_flavor"):
        result = manager.start_edit_flavor(params["edit_flavor"])
    elif params.get("new_flavor"):
        manager.open_new_flavor_form()

    if params.get("edit_step"):
        result = manager.start_edit_step(params["edit_step"])
    elif params.get("new_step"):
        result = manager.open_new_step_form()

    if result is not None and not result.ok:
        return _render_flavors(request, manager, result)
    return _render_flavors(request, manager)


@router.post(f"{FLAVORS_PATH}/flavors", response_model=None)
def submit_flavor(
    request: Request,
    name: str = Form(default=""),
    description: str = Form(default=""),
    editing_id: str = Form(default=""),
    flavor: str = Form(default=""),
    store: SupabaseClient = Depends(get_store),
) -> Response:
    """Create a flavor, or update the one named by editing_id."""
    manager, error = _build_manager(store, flavor or None)
    if error:
        return _render_flavors(request, manager, error)

    if editing_id:
        result = manager.start_edit_flavor(editing_id)
        if not result.ok:
            return _render_flavors(request, manager, result)
    else:
        manager.open_new_flavor_form()

    manager.flavor_form.name = name
    manager.flavor_form.description = description

    result = manager.submit_flavor_form()
    if not result.ok:
        return _render_flavors(request, manager, result)

    selected = manager.selected_flavor.id if manager.selected_flavor else None
    return RedirectResponse(url=_flavors_url(selected, msg=result.message, kind="ok"), status_code=303)


@router.post(f"{FLAVORS_PATH}/flavors/{{flavor_id}}/delete", response_model=None)
def delete_flavor(
    request: Request,
    flavor_id: str,
    confirm: str = Form(default=""),
    flavor: str = Form(default=""),
    store: SupabaseClient = Depends(get_store),
) -> Response:
    manager, error = _build_manager(store, flavor or None)
    if error:
        return _render_flavors(request, manager, error)

    result = manager.delete_flavor(flavor_id, confirmed=_confirmed(confirm))
    if not result.ok:
        return _render_flavors(request, manager, result)

    selected = manager.selected_flavor.id if manager.selected_flavor else None
    return RedirectResponse(url=_flavors_url(selected, msg=result.message, kind="ok"), status_code=303)


@router.post(f"{FLAVORS_PATH}/steps", response_model=None)
def submit_step(
    request: Request,
    flavor: str = Form(default=""),
    step_number: str = Form(default=""),
    instruction: str = Form(default=""),
    editing_id: str = Form(default=""),
    store: SupabaseClient = Depends(get_store),
) -> Response:
    """Create a step for the selected flavor, or update the one named by editing_id."""
    manager, error = _build_manager(store, flavor or None)
    if error:
        return _render_flavors(request, manager, error)

    if editing_id:
        result = manager.start_edit_step(editing_id)
    else:
        result = manager.open_new_step_form()
    if not result.ok:
        return _render_flavors(request, manager, result)

    manager.step_form.step_number = step_number
    manager.step_form.instruction = instruction

    result = manager.submit_step_form()
    if not result.ok:
        return _render_flavors(request, manager, result)

    return RedirectResponse(
        url=_flavors_url(manager.selected_flavor.id, msg=result.message, kind="ok"),
        status_code=303,
    )


@router.post(f"{FLAVORS_PATH}/steps/{{step_id}}/delete", response_model=None)
def delete_step(
    request: Request,
    step_id: str,
    flavor: str = Form(default=""),
    confirm: str = Form(default=""),
    store: SupabaseClient = Depends(get_store),
) -> Response:
    manager, error = _build_manager(store, flavor or None)
    if error:
        return _render_flavors(request, manager, error)

    if manager.selected_flavor is None:
        return _render_flavors(request, manager, OperationResult.invalid("Select a flavor first"))

    result = manager.delete_step(step_id, confirmed=_confirmed(confirm))
    if not result.ok:
        return _render_flavors(request, manager, result)

    return RedirectResponse(
        url=_flavors_url(manager.selected_flavor.id, msg=result.message, kind="ok"),
        status_code=303,
    )
