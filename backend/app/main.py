from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import ServiceError, service_error_handler
from app.core.module_loader import collect_routers
from app.core.database import SessionLocal, ensure_core_schema
from app.modules.maintenance.middleware import MaintenanceMiddleware
from app.modules.users.bootstrap import ensure_default_owner


def configure_logging() -> None:
    level = "DEBUG" if settings.is_dev else settings.LOG_LEVEL.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Eziox API", version="0.1.0")

    # Last added is outermost: CORS wraps maintenance so 503s still carry CORS headers
    if settings.MAINTENANCE_ENFORCE:
        app.add_middleware(MaintenanceMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)

    routers = collect_routers()
    # Ensure DB schema is present before routes are registered
    ensure_core_schema()

    for router in routers:
        app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        # Ensure the owner account is present if configured
        db = SessionLocal()
        try:
            ensure_default_owner(db)
        finally:
            db.close()

    return app


app = create_app()
