from typing import List, Optional, Protocol
from dataclasses import dataclass
from datetime import datetime

from ...exceptions import ResultNotReadyError
from ...schemas.analysis.analysis import AnalysisResult
from ...schemas.scans.scan import PatientInfo, ScanStatus


@dataclass
class ScanRecord:
    id: str
    image_url: str
    file_name: str
    file_size: int
    uploaded_at: datetime
    patient_info: Optional[PatientInfo] = None
    status: ScanStatus = ScanStatus.ANALYZING
    result: Optional[AnalysisResult] = None
    failure_reason: Optional[str] = None
    finished_at: Optional[datetime] = None
    cancelled: bool = False

    @property
    def patient_name(self) -> Optional[str]:
        return self.patient_info.name if self.patient_info else None

    def require_result(self) -> AnalysisResult:
        if self.status != ScanStatus.COMPLETED or self.result is None:
            raise ResultNotReadyError(self.id, self.status.value)
        return self.result


class ScanRepository(Protocol):
    def add(self, record: ScanRecord) -> ScanRecord:
        ...

    def get(self, scan_id: str) -> Optional[ScanRecord]:
        ...

    def exists(self, scan_id: str) -> bool:
        ...

    def push_history(self, record: ScanRecord) -> None:
        ...

    def history(self) -> List[ScanRecord]:
        ...
