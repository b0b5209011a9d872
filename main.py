"""
Labor Administration - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import init_db, close_db, async_session_factory
from app.utils.error_handling import setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def seed_super_admin():
    """
    Seed the Super Admin user on startup.
    Only runs when SUPER_ADMIN_EMAIL, SUPER_ADMIN_PASSWORD and SUPER_ADMIN_RUT are set.
    """
    from app.services.auth_service import AuthService

    if not (settings.super_admin_email and settings.super_admin_password and settings.super_admin_rut):
        logger.debug("Super Admin seeding not configured")
        return

    async with async_session_factory() as session:
        service = AuthService(session)
        try:
            super_admin = await service.get_or_create_super_admin(
                email=settings.super_admin_email,
                password=settings.super_admin_password,
                rut=settings.super_admin_rut,
                name=settings.super_admin_name,
            )
            logger.info(f"Super Admin ready: {super_admin.email}")
        except Exception as e:
            logger.warning(f"Could not seed Super Admin: {e}")


async def sweep_expired_leaves():
    """
    Return workers whose leave already ended to the active state.
    Celery beat runs the same sweep daily; this covers restarts in development.
    """
    from app.services.leave_request_service import LeaveRequestService

    async with async_session_factory() as session:
        try:
            reverted = await LeaveRequestService(session).expire_leaves()
            logger.info(f"Startup leave expiry sweep: {reverted} record(s) reverted")
        except Exception as e:
            logger.warning(f"Startup leave expiry sweep failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")

    # Initialize database (dev only - use migrations in production)
    if settings.is_development or settings.is_testing:
        await init_db()
        logger.info("Database tables initialized")

    await seed_super_admin()

    if settings.leave_sweep_on_startup and settings.is_development:
        await sweep_expired_leaves()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Workers, employment records, employment history, leave requests and bonuses",
    version="0.1.0",
    docs_url="/api/docs" if not settings.is_production else None,
    redoc_url="/api/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global error handlers (AppException, HTTP, validation, database, catch-all)
setup_exception_handlers(app)


# ===========================================
# API ROUTES
# ===========================================

@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": "0.1.0",
        "status": "running",
        "environment": settings.app_env,
        "api_docs": "/api/docs" if not settings.is_production else "disabled",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
    }


# ===========================================
# INCLUDE ROUTERS
# ===========================================

from app.routers import (
    auth,
    workers,
    employment_records,
    employment_history,
    leave_requests,
    bonuses,
    trainings,
)

# Authentication
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])

# Workers (trabajador)
app.include_router(workers.router, prefix="/api/trabajador", tags=["Workers"])

# Employment records and labor changes (ficha empresa)
app.include_router(employment_records.router, prefix="/api/ficha-empresa", tags=["Employment Records"])

# Employment history ledger (historial laboral)
app.include_router(employment_history.router, prefix="/api/historial-laboral", tags=["Employment History"])

# Leave and permit requests (licencia permiso)
app.include_router(leave_requests.router, prefix="/api/licencia-permiso", tags=["Leave Requests"])

# Bonus catalog and assignments (bono)
app.include_router(bonuses.router, prefix="/api/bono", tags=["Bonuses"])

# Worker trainings (capacitacion)
app.include_router(trainings.router, prefix="/api/capacitacion", tags=["Trainings"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
