import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import sessionmaker
from supabase import create_client

from app import models  # noqa: F401  registers the tables on Base
from app.core.auth import AuthContext
from app.core.collection import CollectionRegistry
from app.core.config import settings
from app.core.db import Base, SessionLocal, engine
from app.core.errors import (
    AuthError,
    FamilyHealthError,
    ForbiddenError,
    NotAuthenticatedError,
    NotFoundError,
    RemoteError,
)
from app.core.logging import configure_logging
from app.core.store import MeasurementStore, ProfileStore
from app.api.v1.health import router as health_router
from app.api.v1.auth import router as auth_router
from app.api.v1.profile import router as profile_router
from app.api.v1.measurements import router as measurements_router
from app.api.v1.dashboard import router as dashboard_router
from app.api.v1.family import router as family_router

log = logging.getLogger(__name__)

# domain error -> HTTP status
ERROR_STATUS = {
    NotAuthenticatedError: 401,
    AuthError: 400,
    ForbiddenError: 403,
    NotFoundError: 404,
    RemoteError: 502,
}


def _auth_client_from_settings():
    if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
        log.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set, auth endpoints disabled")
        return None
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY).auth


def create_app(session_factory: sessionmaker | None = None, auth_client=None) -> FastAPI:
    """
    Build the API. Without arguments the database comes from POSTGRES_DSN and
    the auth client from SUPABASE_URL / SUPABASE_ANON_KEY.
    """
    configure_logging()

    session_factory = session_factory or SessionLocal
    if auth_client is None:
        auth_client = _auth_client_from_settings()

    measurements = MeasurementStore(session_factory) if session_factory else None
    profiles = ProfileStore(session_factory) if session_factory else None
    registry = CollectionRegistry(measurements) if measurements else None
    auth = AuthContext(auth_client, profiles)

    if registry is not None:
        # loaded collections belong to the previous session
        auth.add_listener(lambda _user_id: registry.clear())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        auth.start()
        try:
            yield
        finally:
            auth.stop()
            if registry is not None:
                registry.clear()

    app = FastAPI(title="FamilyHealth", version="1.0.0", lifespan=lifespan)
    app.state.measurements = measurements
    app.state.profiles = profiles
    app.state.registry = registry
    app.state.auth = auth

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FamilyHealthError)
    async def family_health_error(request: Request, exc: FamilyHealthError):
        status = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)),
            500,
        )
        if status >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"detail": exc.message}, status_code=status)

    app.include_router(health_router, prefix="/v1")
    app.include_router(auth_router, prefix="/v1")
    app.include_router(profile_router, prefix="/v1")
    app.include_router(measurements_router, prefix="/v1")
    app.include_router(dashboard_router, prefix="/v1")
    app.include_router(family_router, prefix="/v1")

    return app


if engine:
    Base.metadata.create_all(bind=engine)

app = create_app()
