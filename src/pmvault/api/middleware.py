"""API middleware for authentication."""

import logging
import secrets
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from pmvault.core import config

logger = logging.getLogger(__name__)

# Paths that don't require authentication
PUBLIC_PATHS = {"/api/v1/health", "/docs", "/openapi.json", "/redoc"}


def _extract_api_key(request: Request) -> str | None:
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:]
    return None


async def api_key_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Middleware to validate API key authentication.

    Checks the X-API-Key header (or a Bearer token) against PMVAULT_API_KEY.
    Public paths are exempt from authentication.
    """
    path = request.url.path

    # Allow public paths without authentication
    if path in PUBLIC_PATHS or path.startswith("/docs") or path.startswith("/redoc"):
        return await call_next(request)

    # If no API key is configured, fail closed unless explicitly allowed
    if not config.PMVAULT_API_KEY:
        if not config.PMVAULT_ALLOW_NO_AUTH:
            logger.error("PMVAULT_API_KEY not set - refusing unauthenticated access")
            return JSONResponse(
                status_code=503,
                content={"detail": "API key not configured"},
            )
        return await call_next(request)

    api_key = _extract_api_key(request)
    if not api_key:
        return JSONResponse(
            status_code=401,
            content={"detail": "Missing X-API-Key header"},
        )

    if not secrets.compare_digest(api_key, config.PMVAULT_API_KEY):
        return JSONResponse(
            status_code=401,
            content={"detail": "Invalid API key"},
        )

    return await call_next(request)
