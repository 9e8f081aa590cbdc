from typing import Optional, Dict, Any, Protocol


class AuditLogger(Protocol):
    def log(self, event: str, scan_id: str, status: str, details: Optional[Dict[str, Any]] = None) -> None:
        ...
