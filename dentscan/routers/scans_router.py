from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse
from datetime import datetime, timezone
from typing import List, Optional
import logging
import os

from ..application.ports.scan_repo import ScanRecord
from ..application.ports.storage_repo import StorageRepository
from ..application.services.progress import analysis_progress
from ..application.services.report_export import render_text_report, report_filename
from ..application.services.scan_lifecycle import ScanLifecycleService
from ..core.config import settings
from ..dependencies import get_scan_service, get_storage
from ..schemas.analysis.analysis import AnalysisResult
from ..schemas.common.common import CancelResponse, ErrorResponse
from ..schemas.scans.scan import MEDICAL_HISTORY_OPTIONS, AgeRange, PatientInfo, ScanResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scans", tags=["Scans"])

NOT_FOUND = {404: {"model": ErrorResponse}}
CONFLICT = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}

UPLOADS_URL_PREFIX = "/uploads"


def public_image_url(saved_path: str) -> str:
    if saved_path.startswith("http"):
        return saved_path
    rel = os.path.relpath(saved_path, settings.UPLOAD_DIR)
    if rel.startswith(".."):
        return saved_path
    return f"{UPLOADS_URL_PREFIX}/{rel.replace(os.sep, '/')}"


def to_scan_response(record: ScanRecord, now: Optional[datetime] = None) -> ScanResponse:
    now = now or datetime.now(timezone.utc)
    return ScanResponse(
        id=record.id,
        image_url=record.image_url,
        file_name=record.file_name,
        file_size=record.file_size,
        upload_date=record.uploaded_at.isoformat(),
        patient_info=record.patient_info,
        status=record.status,
        analysis_results=record.result,
        failure_reason=record.failure_reason,
        cancelled=record.cancelled,
        progress=analysis_progress(record, now, settings.ANALYSIS_STEP_SECONDS),
    )


@router.post("", response_model=ScanResponse, status_code=202, responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 415: {"model": ErrorResponse}})
async def upload_scan(
    file: UploadFile = File(...),
    patient_name: Optional[str] = Form(None),
    age_range: Optional[AgeRange] = Form(None),
    medical_history: Optional[List[str]] = Form(None, description=f"Condition labels, e.g. {', '.join(MEDICAL_HISTORY_OPTIONS)}"),
    service: ScanLifecycleService = Depends(get_scan_service),
    storage: StorageRepository = Depends(get_storage),
):
    """Accept an X-ray upload and start its analysis"""
    if not settings.is_allowed_image_type(file.content_type):
        raise HTTPException(status_code=415, detail=f"File type {file.content_type} not allowed")

    content = await file.read()
    file_size = len(content)
    if file_size == 0:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if file_size > settings.MAX_FILE_SIZE:
        raise HTTPException(status_code=413, detail=f"File too large (max {settings.MAX_FILE_SIZE // (1024*1024)}MB)")

    patient = PatientInfo(name=patient_name, age_range=age_range, medical_history=medical_history or [])

    file_name = file.filename or "upload"
    saved_path = storage.save_bytes("scans", file_name, content)
    image_url = public_image_url(saved_path)

    record = service.start(image_url, file_name, file_size, patient)
    return to_scan_response(record)


@router.get("/{scan_id}", response_model=ScanResponse, responses=NOT_FOUND)
def get_scan(scan_id: str, service: ScanLifecycleService = Depends(get_scan_service)):
    return to_scan_response(service.get(scan_id))


@router.get("/{scan_id}/result", response_model=AnalysisResult, responses=CONFLICT)
def get_scan_result(scan_id: str, service: ScanLifecycleService = Depends(get_scan_service)):
    return service.result_of(scan_id)


@router.post("/{scan_id}/cancel", response_model=CancelResponse, responses=CONFLICT)
def cancel_scan(scan_id: str, service: ScanLifecycleService = Depends(get_scan_service)):
    cancelled = service.cancel(scan_id)
    message = "Analysis cancelled" if cancelled else "No pending analysis for this scan"
    return CancelResponse(scan_id=scan_id, cancelled=cancelled, message=message)


@router.get("/{scan_id}/report", response_class=PlainTextResponse, responses=CONFLICT)
def download_report(scan_id: str, service: ScanLifecycleService = Depends(get_scan_service)):
    record = service.get(scan_id)
    text = render_text_report(record)
    logger.info(f"Exported report for scan {scan_id}")
    return PlainTextResponse(
        text,
        headers={"Content-Disposition": f'attachment; filename="{report_filename(record)}"'},
    )
