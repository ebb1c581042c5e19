"""FastAPI application for Green Space Tracker.

Hosts the generated data API, the identity endpoints and the account page
that drives them.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError

from greenspace import __version__
from greenspace.auth.api_keys import ApiKeyManager
from greenspace.auth.middleware import AuthMiddleware
from greenspace.core.config import Settings
from greenspace.data.store import RecordStore
from greenspace.identity.account import AccountService
from greenspace.identity.delivery import MockCodeDeliveryService
from greenspace.identity.errors import IdentityError
from greenspace.identity.events import AuthEventHub
from greenspace.identity.models import AuthEvent
from greenspace.identity.provider import LocalIdentityProvider
from greenspace.web.data_router import build_data_router
from greenspace.web.identity_router import router as identity_router
from greenspace.web.impact_router import router as impact_router

logger = logging.getLogger(__name__)

_WEB_DIR = Path(__file__).parent
_TEMPLATES_DIR = _WEB_DIR / "templates"
_STATIC_DIR = _WEB_DIR / "static"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str = __version__
    storage: str
    database_ok: bool | None = None


def _log_auth_event(event: AuthEvent) -> None:
    logger.info("Auth event: %s user=%s", event.type.value, event.user_id or event.username)


def create_app(
    settings: Settings | None = None,
    identity_provider: LocalIdentityProvider | None = None,
    record_store: Any | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with their own stores and identity provider.

    Args:
        settings: Application settings. Defaults to Settings().
        identity_provider: Optional pre-built identity provider.
        record_store: Optional record store; when omitted, a Postgres
            repository is used if ``settings.db.database_url`` is set,
            otherwise an in-memory RecordStore.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("greenspace").setLevel(settings.log_level.upper())

    db_manager = None
    if record_store is None:
        if settings.db.database_url:
            from greenspace.db.engine import DatabaseManager
            from greenspace.repositories.postgres.records import PostgresRecordRepository

            db_manager = DatabaseManager.from_config(settings.db)
            record_store = PostgresRecordRepository(db_manager)
        else:
            record_store = RecordStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if db_manager is not None:
            await db_manager.create_all()
        yield
        if db_manager is not None:
            await db_manager.close()

    app = FastAPI(
        title="Green Space Tracker",
        description="Green space records, impact metrics and account management",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Identity
    if identity_provider is None:
        if settings.identity.provider != "local":
            raise ValueError(f"Unsupported identity provider: {settings.identity.provider!r}")
        identity_provider = LocalIdentityProvider(
            delivery=MockCodeDeliveryService(),
            hub=AuthEventHub(history_size=settings.identity.event_history_size),
            fixtures_path=settings.identity.fixtures_path,
            token_expiry_minutes=settings.identity.token_expiry_minutes,
            refresh_token_expiry_days=settings.identity.refresh_token_expiry_days,
            code_expiry_minutes=settings.identity.code_expiry_minutes,
        )
    identity_provider.hub.listen(_log_auth_event)
    account_service = AccountService(identity_provider, record_store)

    # Public API key for the data API
    api_keys = ApiKeyManager(expires_in_days=settings.api_key.expires_in_days)
    default_key = api_keys.issue(description="default", key=settings.api_key.default_key)

    app.state.settings = settings
    app.state.record_store = record_store
    app.state.db_manager = db_manager
    app.state.identity_provider = identity_provider
    app.state.account_service = account_service
    app.state.api_keys = api_keys
    app.state.default_api_key = default_key

    app.add_middleware(AuthMiddleware)

    @app.exception_handler(IdentityError)
    async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.name},
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": jsonable_encoder(exc.errors(include_url=False, include_context=False))
            },
        )

    app.include_router(identity_router)
    app.include_router(build_data_router())
    app.include_router(impact_router)

    templates = Jinja2Templates(directory=str(_TEMPLATES_DIR))

    if _STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")

    # --- Routes ---

    @app.get("/", response_class=HTMLResponse)
    async def serve_account_ui(request: Request) -> HTMLResponse:
        """Serve the account page."""
        return templates.TemplateResponse(request, "account.html", {"title": app.title})

    @app.get("/api/client-config")
    async def client_config() -> dict[str, Any]:
        """Settings a browser client needs to talk to this backend."""
        return {
            "api_key": default_key.key,
            "api_key_expires_at": default_key.expires_at.isoformat(),
            "login_with": ["email"],
        }

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        if db_manager is None:
            return HealthResponse(status="healthy", service="greenspace-tracker", storage="memory")
        database_ok = await db_manager.ping()
        return HealthResponse(
            status="healthy" if database_ok else "degraded",
            service="greenspace-tracker",
            storage="postgres",
            database_ok=database_ok,
        )

    return app
