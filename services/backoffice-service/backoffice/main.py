"""FastAPI application wiring for the backoffice service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.auth import router as auth_router
from .api.backend import router as backend_router
from .api.users import router as users_router
from .config import get_settings
from .domain.policy import PolicyService
from .domain.service import UserService
from .i18n.cache import build_label_cache
from .i18n.translator import Translator
from .i18n.xliff import XliffService
from .messaging.flash import build_flash_store
from .repository import UserRepository
from .security.authentication import AuthenticationManager
from .services.redirection import BackendRedirectionService

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services, caches) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    policy_service = (
        PolicyService.from_file(settings.policy_path) if settings.policy_path else PolicyService()
    )
    user_service = UserService(UserRepository(pool), policy_service)
    authentication_manager = AuthenticationManager(user_service, settings.authentication_providers)
    xliff_service = XliffService(
        settings.translations_path,
        build_label_cache(settings),
        default_locale=settings.default_locale,
    )

    app.state.pool = pool
    app.state.policy_service = policy_service
    app.state.user_service = user_service
    app.state.authentication_manager = authentication_manager
    app.state.flash_store = build_flash_store(settings)
    app.state.xliff_service = xliff_service
    app.state.translator = Translator(xliff_service, default_locale=settings.default_locale)
    app.state.redirection_service = BackendRedirectionService(
        authentication_manager, settings.after_login_uri
    )
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

# CORS for the local backend UI dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", tags=["health"])
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(backend_router)
