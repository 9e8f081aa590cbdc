import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from .core.config import settings
from .exceptions import error_json

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# Scan ids in paths would otherwise make every request look unique in the logs
_SCAN_ROUTE_PREFIX = "/scans/"


class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


def _route_label(path: str) -> str:
    if not path.startswith(_SCAN_ROUTE_PREFIX):
        return path
    parts = path[len(_SCAN_ROUTE_PREFIX):].split("/", 1)
    suffix = f"/{parts[1]}" if len(parts) > 1 else ""
    return f"{_SCAN_ROUTE_PREFIX}{{id}}{suffix}"


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, f"{request.method} {_route_label(request.url.path)} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error: {str(e)}", exc_info=True)
            detail = f"Internal server error: {str(e)}" if settings.DEBUG else "Internal server error"
            return error_json(500, detail)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Reject oversized uploads up front using Content-Length when available
        content_length = request.headers.get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                # Malformed header; the upload handler still checks the file size
                size = None
            if size is not None and size > settings.MAX_REQUEST_SIZE:
                logger.info(f"Rejected {request.method} {request.url.path}: {size} bytes exceeds {settings.MAX_REQUEST_SIZE}")
                return error_json(413, "Request entity too large")
        return await call_next(request)
