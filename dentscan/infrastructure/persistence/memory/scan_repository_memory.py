from typing import Dict, List, Optional

from ....application.ports.scan_repo import ScanRecord, ScanRepository


class InMemoryScanRepository(ScanRepository):
    """Scans live for the lifetime of the process only."""

    def __init__(self) -> None:
        self._scans: Dict[str, ScanRecord] = {}
        self._history: List[ScanRecord] = []

    def add(self, record: ScanRecord) -> ScanRecord:
        self._scans[record.id] = record
        return record

    def get(self, scan_id: str) -> Optional[ScanRecord]:
        return self._scans.get(scan_id)

    def exists(self, scan_id: str) -> bool:
        return scan_id in self._scans

    def push_history(self, record: ScanRecord) -> None:
        # most recent first
        self._history.insert(0, record)

    def history(self) -> List[ScanRecord]:
        return list(self._history)
