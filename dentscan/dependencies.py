from fastapi import Request

from .application.ports.storage_repo import StorageRepository
from .application.services.scan_lifecycle import ScanLifecycleService
from .core.config import settings
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.persistence.memory.scan_repository_memory import InMemoryScanRepository
from .infrastructure.random.system_random import SystemRandomSource
from .infrastructure.scheduling.asyncio_scheduler import AsyncioScheduler
from .infrastructure.storage.local_storage import LocalStorageRepository


def build_scan_service(scheduler: AsyncioScheduler) -> ScanLifecycleService:
    return ScanLifecycleService(
        repo=InMemoryScanRepository(),
        scheduler=scheduler,
        random_source=SystemRandomSource(settings.RANDOM_SEED),
        delay_seconds=settings.analysis_delay_seconds,
        audit=StdAuditLogger(),
    )


def get_scan_service(request: Request) -> ScanLifecycleService:
    return request.app.state.scan_service


def get_storage(request: Request) -> StorageRepository:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = LocalStorageRepository()
        request.app.state.storage = storage
    return storage
