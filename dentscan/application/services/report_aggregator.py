"""Dashboard statistics and filtering over the scan history."""
from collections import Counter
from typing import Iterable, List, Optional, Union

from ..ports.scan_repo import ScanRecord
from ...schemas.analysis.analysis import AnalysisResult, ReportStatus, Severity, SeverityBreakdown
from ...schemas.dashboard.dashboard import DashboardStats

ALL_STATUSES = "all"

StatusFilter = Union[str, ReportStatus]


def parse_status_filter(value: Optional[StatusFilter]) -> Optional[ReportStatus]:
    """``None`` means no status restriction; unknown values raise ValueError."""
    if value is None or value == "" or (isinstance(value, str) and value.lower() == ALL_STATUSES):
        return None
    if isinstance(value, ReportStatus):
        return value
    try:
        return ReportStatus(value.lower())
    except ValueError:
        allowed = ", ".join([ALL_STATUSES] + [s.value for s in ReportStatus])
        raise ValueError(f"Unknown status filter {value!r}. Expected one of: {allowed}")


def _report_status(record: ScanRecord) -> Optional[ReportStatus]:
    return record.result.status if record.result is not None else None


def compute_stats(records: Iterable[ScanRecord]) -> DashboardStats:
    records = list(records)
    by_status = Counter(s for s in map(_report_status, records) if s is not None)
    return DashboardStats(
        total=len(records),
        healthy=by_status[ReportStatus.HEALTHY],
        attention=by_status[ReportStatus.ATTENTION],
        urgent=by_status[ReportStatus.URGENT],
    )


def _matches_query(record: ScanRecord, needle: str) -> bool:
    if needle in record.file_name.lower():
        return True
    name = record.patient_name
    return name is not None and needle in name.lower()


def filter_records(records: Iterable[ScanRecord], status_filter: Optional[StatusFilter] = ALL_STATUSES, query: str = "") -> List[ScanRecord]:
    wanted = parse_status_filter(status_filter)
    needle = (query or "").lower()
    return [
        r for r in records
        if (wanted is None or _report_status(r) == wanted)
        and (not needle or _matches_query(r, needle))
    ]


def severity_breakdown(result: AnalysisResult) -> SeverityBreakdown:
    counts = Counter(f.severity for f in result.findings)
    return SeverityBreakdown(
        healthy=counts[Severity.HEALTHY],
        moderate=counts[Severity.MODERATE],
        urgent=counts[Severity.URGENT],
    )
