from datetime import datetime
from typing import Optional

from ..ports.scan_repo import ScanRecord
from ..taxonomy import ANALYSIS_STEPS
from ...schemas.scans.scan import AnalysisProgress, ScanStatus


def analysis_progress(record: ScanRecord, now: datetime, step_seconds: float) -> Optional[AnalysisProgress]:
    """Presentation-only progress derived from the time since upload.

    Failed and cancelled scans have no progress. Completed scans always report
    the final step at 100 percent.
    """
    last = len(ANALYSIS_STEPS) - 1
    if record.status == ScanStatus.COMPLETED:
        return AnalysisProgress(percent=100, step_index=last, step=ANALYSIS_STEPS[last], completed_steps=list(ANALYSIS_STEPS))
    if record.status == ScanStatus.FAILED or record.cancelled:
        return None

    elapsed = max(0.0, (now - record.uploaded_at).total_seconds())
    total = len(ANALYSIS_STEPS) * step_seconds
    if total <= 0:
        percent, index = 100, last
    else:
        percent = min(100, int(elapsed / total * 100))
        index = min(last, int(elapsed / step_seconds))
    return AnalysisProgress(
        percent=percent,
        step_index=index,
        step=ANALYSIS_STEPS[index],
        completed_steps=list(ANALYSIS_STEPS[: index + 1]),
    )
