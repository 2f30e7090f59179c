"""
FastAPI application for the humor flavor admin console.

Serves the server-rendered console pages and a small JSON API, both backed
by Supabase. Use create_app() to build an instance; the uvicorn launcher in
backend/server.py calls it as a factory.
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from backend.console import public_router, router as console_router
from backend.guard import (
    LOGIN_PATH,
    UNAUTHORIZED_PATH,
    AuthenticationRequired,
    NotAuthorized,
    wants_json,
)
from backend.routes import router as api_router
from models.config_models import Config
from storage.supabase_client import SupabaseClient
from utils.config_loader import load_config
from utils.logger import setup_logger

logger = setup_logger(name=__name__)


def create_app(config: Optional[Config] = None, store: Optional[SupabaseClient] = None) -> FastAPI:
    """
    Build the console application.

    Args:
        config: Validated configuration (loaded from .env when omitted)
        store: Storage client (created from the config credentials when omitted)

    Returns:
        FastAPI: Configured application
    """
    if config is None:
        config = load_config()
    setup_logger(config.log_level)

    if store is None:
        store = SupabaseClient(
            config.credentials.supabase_url,
            config.credentials.supabase_key
        )

    app = FastAPI(
        title="Humor Flavor Admin",
        description="Superadmin console for humor flavors and their steps",
        version="1.0.0"
    )
    app.state.config = config
    app.state.store = store

    # Only needed when a separate frontend calls /api from another origin
    if config.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(AuthenticationRequired)
    async def _authentication_required(request: Request, exc: AuthenticationRequired):
        if wants_json(request):
            return JSONResponse({"detail": "Not authenticated"}, status_code=401)
        return RedirectResponse(url=LOGIN_PATH, status_code=303)

    @app.exception_handler(NotAuthorized)
    async def _not_authorized(request: Request, exc: NotAuthorized):
        if wants_json(request):
            return JSONResponse({"detail": "Superadmin privileges required"}, status_code=403)
        return RedirectResponse(url=UNAUTHORIZED_PATH, status_code=303)

    @app.get("/healthz", include_in_schema=False)
    def health():
        return PlainTextResponse("ok")

    app.include_router(public_router)
    app.include_router(console_router)
    app.include_router(api_router)

    logger.info("FastAPI app initialized")
    return app
