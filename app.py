from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import logging system
from core.config import settings
from core.logging import setup_logging, get_logger, app_logger

from core.exceptions import setup_exception_handlers
from core.middleware import setup_middleware
from db_config import AsyncSessionLocal

# Import routers
from routers import (
    auth, smells, admin_smells, user, admin_users,
    admin_analytics, admin_settings, health
)
from services.identity_service import IdentityService

# Initialize logging system early
setup_logging()
logger = get_logger("fastapi")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Provision the configured admin account, then serve."""
    app_logger.info("FastAPI application starting up", component="startup")
    async with AsyncSessionLocal() as session:
        await IdentityService(session).ensure_default_admin()
    yield
    app_logger.info("FastAPI application shutting down", component="shutdown")


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    description="Backend API for Refactorium, a code-smell learning catalogue",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Setup global exception handlers
setup_exception_handlers(app)

# Setup security middleware
middleware_config = {
    "enable_security_headers": settings.enable_security_headers,
    "enable_request_logging": settings.enable_request_logging,
    "enable_size_limit": settings.enable_request_size_limit,
    "max_request_size": settings.max_request_size_bytes,
}
setup_middleware(app, middleware_config)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)
app.include_router(smells.router)
app.include_router(admin_smells.router)
app.include_router(user.router)
# analytics first so /admin/users/analytics is not taken as a user id
app.include_router(admin_analytics.router)
app.include_router(admin_users.router)
app.include_router(admin_settings.router)
app.include_router(health.router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint providing basic API information.
    """
    logger.info("Root endpoint accessed")
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
        "health_checks": {
            "basic": "/health",
            "database": "/health/database",
            "system": "/health/system"
        }
    }
