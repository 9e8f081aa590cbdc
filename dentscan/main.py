import os
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from dotenv import load_dotenv
from datetime import datetime, timezone
import logging

# Load environment variables as early as possible
load_dotenv()

from .core.config import settings
from .dependencies import build_scan_service
from .exceptions import DentScanError, dentscan_exception_handler, http_error_handler
from .infrastructure.scheduling.asyncio_scheduler import AsyncioScheduler
from .infrastructure.storage.local_storage import LocalStorageRepository
from .middleware import SecurityMiddleware, LoggingMiddleware, ErrorHandlingMiddleware, RequestSizeLimitMiddleware
from .routers import scans_router, dashboard_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {settings.APP_NAME}...")
    scheduler = AsyncioScheduler()
    app.state.scheduler = scheduler
    app.state.scan_service = build_scan_service(scheduler)
    app.state.storage = LocalStorageRepository()
    logger.info(f"Analysis delay set to {settings.analysis_delay_seconds:.1f}s")
    yield
    # Shutdown: no scan may complete after the session is gone
    cancelled = app.state.scan_service.shutdown()
    stragglers = scheduler.cancel_all()
    logger.info(f"Shutting down {settings.APP_NAME} ({cancelled} pending analyses cancelled, {stragglers} stray tasks)")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=("/docs" if settings.DOCS_ENABLED else None),
    redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
    openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None)
)

app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(DentScanError, dentscan_exception_handler)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityMiddleware)
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded X-rays are served back to the report views
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(scans_router.UPLOADS_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

app.include_router(scans_router.router)
app.include_router(dashboard_router.router)

@app.get("/health")
def health_check():
    service = getattr(app.state, "scan_service", None)
    return {
        "status": "healthy" if service is not None and not service.closed else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "analysis": {
            "delay_seconds": settings.analysis_delay_seconds,
            "pending": service.pending_count if service is not None else 0,
            "history_size": len(service.history()) if service is not None else 0,
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "dentscan.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=1,  # scans live in process memory
        log_level=settings.LOG_LEVEL.lower()
    )
