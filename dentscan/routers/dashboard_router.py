from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import datetime, timezone
import logging

from ..application.services.report_aggregator import ALL_STATUSES, compute_stats, filter_records
from ..application.services.scan_lifecycle import ScanLifecycleService
from ..dependencies import get_scan_service
from ..schemas.dashboard.dashboard import DashboardData, DashboardResponse, DashboardStats
from .scans_router import to_scan_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    status: str = Query(ALL_STATUSES, description="Report status filter: all, healthy, attention, urgent"),
    q: str = Query("", description="Search by file name or patient name"),
    service: ScanLifecycleService = Depends(get_scan_service),
):
    """History of completed scans with summary statistics"""
    history = service.history()
    try:
        filtered = filter_records(history, status, q)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    now = datetime.now(timezone.utc)
    logger.info(f"Dashboard: {len(filtered)}/{len(history)} scans for status={status!r} q={q!r}")
    return DashboardResponse(
        success=True,
        data=DashboardData(
            status_filter=status,
            query=q,
            stats=compute_stats(history),
            scans=[to_scan_response(r, now) for r in filtered],
        ),
    )


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(service: ScanLifecycleService = Depends(get_scan_service)):
    return compute_stats(service.history())
