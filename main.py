import os
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.logging_config import logger

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers.impersonation import router as impersonation_router
from routers.navigation import router as navigation_router

from routers.work_orders import router as work_orders_router
from routers.tasks import router as tasks_router
from routers.issues import router as issues_router
from routers.job_requests import router as job_requests_router
from routers.documents import router as documents_router
from routers.time_entries import router as time_entries_router
from routers.messages import router as messages_router
from routers.notifications import router as notifications_router

from routers.users import router as users_router
from routers.companies import router as companies_router
from routers.onboarding import router as onboarding_router

from routers.operations import router as operations_router
from routers.dashboard import router as dashboard_router
from routers.reports import router as reports_router
from routers.audit_logs import router as audit_logs_router

from routers.health import router as health_router


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="FieldOps Pro API: work orders, field teams and role-based access on Supabase",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup: config check, scheduler, route log
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
        validate_config_on_startup(strict=False)

        if settings.ENABLE_SCHEDULER:
            from core.scheduler import start_scheduler
            app.state.scheduler = start_scheduler()

        paths = [r for r in app.routes if getattr(r, "path", None)]
        for route in paths:
            methods = ",".join(sorted(getattr(route, "methods", None) or []))
            logger.debug(f"{methods:10s} {route.path}")
        logger.info(f"{len(paths)} routes registered")

    @app.on_event("shutdown")
    async def on_shutdown():
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler:
            scheduler.shutdown(wait=False)

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Identity, role testing, navigation
    app.include_router(impersonation_router)
    app.include_router(navigation_router)

    # Field work
    app.include_router(work_orders_router)
    app.include_router(tasks_router)
    app.include_router(issues_router)
    app.include_router(job_requests_router)
    app.include_router(documents_router)
    app.include_router(time_entries_router)

    # Communication
    app.include_router(messages_router)
    app.include_router(notifications_router)

    # Team & companies
    app.include_router(users_router)
    app.include_router(companies_router)
    app.include_router(onboarding_router)

    # Operations & reporting
    app.include_router(operations_router)
    app.include_router(dashboard_router)
    app.include_router(reports_router)
    app.include_router(audit_logs_router)

    # Health
    app.include_router(health_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {"service": settings.PROJECT_NAME, "docs": "/docs"}

    return app


# Create the global FastAPI instance
app = create_app()
