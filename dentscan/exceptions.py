from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
import logging

from .schemas.common.common import ErrorResponse

logger = logging.getLogger(__name__)


class DentScanError(Exception):
    """Base class for scan lifecycle errors."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ScanNotFoundError(DentScanError):
    status_code = 404

    def __init__(self, scan_id: str):
        super().__init__(f"Scan {scan_id} not found")
        self.scan_id = scan_id

class InvalidTransitionError(DentScanError):
    """Raised when a scan is driven out of a state it is not in."""
    status_code = 409

    def __init__(self, scan_id: str, current: str, expected: str):
        super().__init__(f"Scan {scan_id} is {current}, expected {expected}")
        self.scan_id = scan_id
        self.current = current
        self.expected = expected

class ResultNotReadyError(DentScanError):
    status_code = 409

    def __init__(self, scan_id: str, current: str):
        super().__init__(f"Scan {scan_id} has no analysis result (status: {current})")
        self.scan_id = scan_id
        self.current = current

class SessionClosedError(DentScanError):
    status_code = 503

    def __init__(self):
        super().__init__("Scan session is shut down")


def error_json(status_code: int, message: str) -> JSONResponse:
    """Every failed request answers with the same envelope as the dashboard."""
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())

async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code < 500:
        logger.info(f"Rejected {request.method} {request.url.path} ({exc.status_code}): {exc.detail}")
    return error_json(exc.status_code, str(exc.detail))

async def dentscan_exception_handler(request: Request, exc: DentScanError) -> JSONResponse:
    """Map lifecycle errors onto HTTP status codes"""
    logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return error_json(exc.status_code, exc.message)
