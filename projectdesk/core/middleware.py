"""
Request middleware: binds the log context and writes one access line per API call.
"""

import re
import time
from typing import Callable
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from projectdesk.core.logging_config import (
    logger,
    bind_request,
    clear_log_context,
    new_request_id,
)


# Health probes, API docs and stored files are not worth an access line
QUIET_PATHS = {"/", "/health", "/favicon.ico", "/docs", "/redoc", "/openapi.json"}
QUIET_PREFIXES = ("/files/",)

# /projects/<uuid>/..., as used by the client, admin and developer routes
_PROJECT_PATH = re.compile(r"/projects/([0-9a-fA-F-]{36})(?:/|$)")


def is_quiet(path: str) -> bool:
    return path in QUIET_PATHS or path.startswith(QUIET_PREFIXES)


def project_id_from_path(path: str) -> str:
    match = _PROJECT_PATH.search(path)
    return match.group(1) if match else ""


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds request and project ids for the duration of a request.

    The request id is taken from X-Request-ID when the caller sends one and
    is echoed back together with X-Response-Time. The user is bound later,
    by the auth dependency.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        path = request.url.path
        bind_request(request_id, project_id_from_path(path))
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.log_failure(exc, operation=f"{request.method} {path}")
            raise
        else:
            duration_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
            if not is_quiet(path):
                logger.log_request(request.method, path, response.status_code, duration_ms)
            return response
        finally:
            clear_log_context()
