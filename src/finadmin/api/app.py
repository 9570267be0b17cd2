"""FastAPI application factory.

API layer:
- Authenticates admins, reads/deletes through the repository
- Returns payloads for the dashboard
- Translates finadmin errors into status codes with a {"message"} body
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Generator

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from finadmin.auth.tokens import Principal, verify_credential
from finadmin.config import Settings, configure_logging, get_settings
from finadmin.db.repo import DbSession
from finadmin.db.session import get_session, init_db
from finadmin.errors import AuthError, FinAdminError

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Dependency returning the settings the app was built with."""
    return request.app.state.settings


def get_db_session(
    settings: Settings = Depends(get_app_settings),
) -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session(settings.db_path, settings.store_timeout_s)
    try:
        yield session
    finally:
        session.close()


def require_admin(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> Principal:
    """Dependency guarding admin routes with a bearer token.

    Raises:
        AuthError: 401 when the header is missing or the token is invalid.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("No token provided", reason="missing")
    token = authorization[len("Bearer ") :].strip()
    return verify_credential(token, settings.jwt_secret)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FinAdminError)
    async def finadmin_error(request: Request, exc: FinAdminError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            location = ".".join(str(part) for part in errors[0].get("loc", ()))
            message = f"{location}: {errors[0].get('msg', 'invalid')}"
        else:
            message = "Invalid request"
        return JSONResponse(status_code=400, content={"message": message})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"{request.method} {request.url.path} raised")
        return JSONResponse(status_code=500, content={"message": "Server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Optional settings; loaded from the environment if omitted.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        configure_logging(settings.log_level)
        init_db(settings.db_path, settings.store_timeout_s)
        logger.info(f"Admin backend using database {settings.db_path}")
        yield

    app = FastAPI(
        title="finadmin API",
        description="Administrative back office for users, transactions and budgets",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS for the dashboard frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Include routes
    from finadmin.api.routes import auth, dashboard, records, users

    protected = [Depends(require_admin)]
    app.include_router(auth.router, prefix="/admin")
    app.include_router(users.router, prefix="/admin", dependencies=protected)
    app.include_router(records.router, prefix="/admin", dependencies=protected)
    app.include_router(dashboard.router, prefix="/admin", dependencies=protected)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
