"""
DocHub API - Main Application Entry Point

FastAPI backend for document management with role-based access control.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dochub.api.access.audit import AuditLogger
from dochub.api.auth.jwt import TokenService
from dochub.api.config import Settings, get_settings
from dochub.api.db.session import Database
from dochub.api.errors import register_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    if app.state.settings.DEBUG:
        await app.state.database.create_all()
    yield
    # Shutdown
    await app.state.database.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="DocHub - Document management API with role-based access control",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    database = Database(settings)
    app.state.settings = settings
    app.state.database = database
    app.state.token_service = TokenService(settings)
    app.state.audit_logger = AuditLogger(database)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Include routers
    from dochub.api.auth.routes import router as auth_router
    from dochub.api.rbac.routes import router as rbac_router
    from dochub.api.documents.routes import router as documents_router
    from dochub.api.access.routes import router as audit_router

    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])
    app.include_router(rbac_router, prefix="/v1/rbac", tags=["RBAC"])
    app.include_router(documents_router, prefix="/v1/document", tags=["Documents"])
    app.include_router(audit_router, prefix="/v1/audit", tags=["Audit"])

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "service": settings.APP_NAME,
        }

    return app
