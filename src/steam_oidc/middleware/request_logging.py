"""Request logging middleware."""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from steam_oidc.core.logging import request_id_ctx

logger = logging.getLogger("steam_oidc.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with a short id and log method, path, status and timing."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        token = request_id_ctx.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            # Query strings are not logged: they carry codes and assertions
            logger.info(
                "%s %s -> %d (%.1fms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - start) * 1000,
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        finally:
            request_id_ctx.reset(token)
