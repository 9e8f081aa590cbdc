# dentscan/application/services/report_export.py
from typing import List

from ..ports.scan_repo import ScanRecord
from .report_aggregator import severity_breakdown

STATUS_LABELS = {
    "healthy": "Healthy",
    "attention": "Attention Needed",
    "urgent": "Urgent",
}


def report_filename(record: ScanRecord) -> str:
    return f"dental-report-{record.id}.txt"


def render_text_report(record: ScanRecord) -> str:
    """Plain-text report for a completed scan.

    Raises ResultNotReadyError when the scan has not completed.
    """
    result = record.require_result()
    lines: List[str] = [
        "DENTAL X-RAY ANALYSIS REPORT",
        "=" * 28,
        f"Scan ID:     {record.id}",
        f"File:        {record.file_name}",
        f"Uploaded:    {record.uploaded_at.strftime('%Y-%m-%d %H:%M:%S')} UTC",
    ]

    patient = record.patient_info
    if patient is not None:
        if patient.name:
            lines.append(f"Patient:     {patient.name}")
        if patient.age_range:
            lines.append(f"Age range:   {patient.age_range.value}")
        if patient.medical_history:
            lines.append(f"History:     {', '.join(patient.medical_history)}")

    breakdown = severity_breakdown(result)
    lines += [
        "",
        f"Overall score: {result.overall_score}/100",
        f"Status:        {STATUS_LABELS[result.status.value]}",
        "",
        result.summary,
        "",
        f"Findings ({len(result.findings)}): "
        f"{breakdown.urgent} urgent, {breakdown.moderate} moderate, {breakdown.healthy} healthy",
    ]

    for f in result.findings:
        tooth = f" {f.tooth_number}" if f.tooth_number else ""
        lines += [
            f"  - {f.condition} ({f.location}{tooth})",
            f"    Severity: {f.severity.value}, confidence: {f.confidence}%",
            f"    {f.description}",
            f"    Recommendation: {f.recommendation}",
        ]

    lines += ["", "Recommendations:"]
    lines += [f"  {i}. {rec}" for i, rec in enumerate(result.recommendations, start=1)]
    lines += [
        "",
        "This report is generated by an automated screening tool and does not replace "
        "a professional dental examination.",
    ]
    return "\n".join(lines) + "\n"
