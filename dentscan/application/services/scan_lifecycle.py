from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
import logging

from ..ports.audit_logger import AuditLogger
from ..ports.random_source import RandomSource
from ..ports.scan_repo import ScanRecord, ScanRepository
from ..ports.scheduler import ScheduledTask, Scheduler
from .report_engine import synthesize
from ...exceptions import InvalidTransitionError, ScanNotFoundError, SessionClosedError
from ...schemas.analysis.analysis import AnalysisResult
from ...schemas.scans.scan import PatientInfo, ScanStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScanLifecycleService:
    """Drives scans from ``analyzing`` to ``completed`` (or ``failed``).

    Every started scan gets one deferred analysis. The handle is kept until it
    fires or is cancelled; ``shutdown`` cancels whatever is still pending so no
    record changes state after the session is gone.
    """

    repo: ScanRepository
    scheduler: Scheduler
    random_source: RandomSource
    delay_seconds: float = 3.5
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = _utcnow
    _pending: Dict[str, ScheduledTask] = field(default_factory=dict, init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, image_url: str, file_name: str, file_size: int, patient_info: Optional[PatientInfo] = None) -> ScanRecord:
        if self._closed:
            raise SessionClosedError()

        if patient_info is not None and patient_info.is_empty():
            patient_info = None

        record = ScanRecord(
            id=self._new_id(),
            image_url=image_url,
            file_name=file_name,
            file_size=file_size,
            uploaded_at=self.clock(),
            patient_info=patient_info,
        )
        self.repo.add(record)

        scan_id = record.id
        self._pending[scan_id] = self.scheduler.schedule(self.delay_seconds, lambda: self._on_analysis_due(scan_id))
        logger.info(f"Scan {scan_id} ({file_name}, {file_size} bytes) started analyzing")
        self._audit("scan_started", record)
        return record

    def complete(self, scan_id: str) -> ScanRecord:
        record = self.get(scan_id)
        self._require_analyzing(record)

        # Synthesize before touching the record so a failing engine leaves it analyzing
        result = synthesize(self.random_source.draw())

        self._drop_pending(scan_id)
        record.result = result
        record.status = ScanStatus.COMPLETED
        record.finished_at = self.clock()
        self.repo.push_history(record)
        logger.info(f"Scan {scan_id} completed: score={result.overall_score} status={result.status.value} findings={len(result.findings)}")
        self._audit("scan_completed", record, {"score": result.overall_score, "report_status": result.status.value})
        return record

    def fail(self, scan_id: str, reason: str) -> ScanRecord:
        record = self.get(scan_id)
        self._require_analyzing(record)

        self._drop_pending(scan_id)
        record.status = ScanStatus.FAILED
        record.failure_reason = reason
        record.finished_at = self.clock()
        logger.warning(f"Scan {scan_id} failed: {reason}")
        self._audit("scan_failed", record, {"reason": reason})
        return record

    def cancel(self, scan_id: str) -> bool:
        """Cancel the pending analysis; the scan then never completes."""
        record = self.get(scan_id)
        if record.status != ScanStatus.ANALYZING:
            raise InvalidTransitionError(scan_id, record.status.value, ScanStatus.ANALYZING.value)

        handle = self._pending.pop(scan_id, None)
        if handle is None:
            return False
        handle.cancel()
        record.cancelled = True
        logger.info(f"Scan {scan_id} analysis cancelled")
        self._audit("scan_cancelled", record)
        return True

    def shutdown(self) -> int:
        """Cancel every pending analysis and refuse new scans."""
        self._closed = True
        cancelled = 0
        for scan_id in list(self._pending):
            if self.cancel(scan_id):
                cancelled += 1
        if cancelled:
            logger.info(f"Session shut down with {cancelled} analyses cancelled")
        return cancelled

    def get(self, scan_id: str) -> ScanRecord:
        record = self.repo.get(scan_id)
        if record is None:
            raise ScanNotFoundError(scan_id)
        return record

    def result_of(self, scan_id: str) -> AnalysisResult:
        return self.get(scan_id).require_result()

    def history(self) -> List[ScanRecord]:
        return self.repo.history()

    def _on_analysis_due(self, scan_id: str) -> None:
        self._pending.pop(scan_id, None)
        if self._closed:
            return
        try:
            self.complete(scan_id)
        except InvalidTransitionError as e:
            logger.warning(f"Deferred analysis skipped: {e.message}")
        except Exception as e:
            logger.error(f"Analysis of scan {scan_id} raised: {e}", exc_info=True)
            self.fail(scan_id, str(e))

    def _require_analyzing(self, record: ScanRecord) -> None:
        if record.status != ScanStatus.ANALYZING:
            raise InvalidTransitionError(record.id, record.status.value, ScanStatus.ANALYZING.value)
        if record.cancelled:
            raise InvalidTransitionError(record.id, "cancelled", ScanStatus.ANALYZING.value)

    def _drop_pending(self, scan_id: str) -> None:
        handle = self._pending.pop(scan_id, None)
        if handle is not None and not handle.done():
            handle.cancel()

    def _new_id(self) -> str:
        base = f"scan-{int(self.clock().timestamp() * 1000)}"
        scan_id = base
        suffix = 2
        while self.repo.exists(scan_id):
            scan_id = f"{base}-{suffix}"
            suffix += 1
        return scan_id

    def _audit(self, event: str, record: ScanRecord, details: Optional[dict] = None) -> None:
        if self.audit is not None:
            self.audit.log(event, record.id, record.status.value, details)
