from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.api.deps import resolve_token_user
from app.core import database
from .schemas import DEFAULT_MESSAGE
from .service import MaintenanceService


logger = logging.getLogger(__name__)

EXEMPT_PREFIXES = ("/health", "/auth", "/maintenance", "/docs", "/redoc", "/openapi.json")


def _is_exempt(path: str) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in EXEMPT_PREFIXES)


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def check_maintenance(token: str | None) -> str | None:
    """Return the maintenance message when the request must be refused, else None."""
    db = database.SessionLocal()
    try:
        svc = MaintenanceService(db)
        status = svc.status()
        if not status.enabled:
            return None
        user = resolve_token_user(db, token) if token else None
        if svc.can_bypass(user):
            return None
        return status.message or DEFAULT_MESSAGE
    finally:
        db.close()


class MaintenanceMiddleware(BaseHTTPMiddleware):
    """Answer 503 for everything but exempt paths while maintenance mode is on."""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = str(getattr(request.url, "path", "") or "")
        if request.method == "OPTIONS" or _is_exempt(path):
            return await call_next(request)

        message = await run_in_threadpool(check_maintenance, _bearer_token(request))
        if message is not None:
            return JSONResponse(
                status_code=503,
                content={"detail": message, "code": "MAINTENANCE"},
                headers={"Retry-After": "300"},
            )
        return await call_next(request)
