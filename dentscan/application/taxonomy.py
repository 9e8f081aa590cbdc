# dentscan/application/taxonomy.py
"""Static catalog of the findings the report engine can emit.

Each entry carries the draw threshold that gates it. Entries are listed in
detection order, which is also the order findings appear in a report.
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..schemas.analysis.analysis import Severity


@dataclass(frozen=True)
class FindingTemplate:
    finding_id: str
    condition: str
    location: str
    tooth_number: Optional[str]
    confidence: int
    severity: Severity
    threshold: float
    description: str
    recommendation: str

    def is_triggered(self, draw: float) -> bool:
        return draw > self.threshold


FINDING_CATALOG: Tuple[FindingTemplate, ...] = (
    FindingTemplate(
        finding_id="1",
        condition="Cavity Detected",
        location="Upper Right Quadrant",
        tooth_number="#14",
        confidence=87,
        severity=Severity.MODERATE,
        threshold=0.3,
        description=(
            "A moderate-sized cavity has been detected on tooth #14. The decay appears to affect "
            "the outer enamel layer and may be extending into the dentin."
        ),
        recommendation=(
            "Schedule a dental appointment for examination and possible filling. "
            "Early treatment can prevent further decay."
        ),
    ),
    FindingTemplate(
        finding_id="2",
        condition="Early Bone Loss",
        location="Lower Left Quadrant",
        tooth_number="#19",
        confidence=72,
        severity=Severity.MODERATE,
        threshold=0.5,
        description=(
            "Minor bone loss detected around tooth #19, which may indicate early periodontal "
            "disease or previous infection."
        ),
        recommendation=(
            "Consult with your dentist about periodontal health. Regular cleanings and proper "
            "oral hygiene are essential."
        ),
    ),
    FindingTemplate(
        finding_id="3",
        condition="Impacted Wisdom Tooth",
        location="Lower Right Quadrant",
        tooth_number="#32",
        confidence=94,
        severity=Severity.URGENT,
        threshold=0.7,
        description=(
            "Wisdom tooth #32 appears to be partially impacted and may be causing pressure on "
            "adjacent teeth."
        ),
        recommendation=(
            "Urgent: Consult with an oral surgeon to evaluate if extraction is necessary. "
            "Impacted wisdom teeth can lead to infection and pain."
        ),
    ),
    FindingTemplate(
        finding_id="4",
        condition="Root Canal Treatment Detected",
        location="Upper Left Quadrant",
        tooth_number="#11",
        confidence=96,
        severity=Severity.HEALTHY,
        threshold=0.4,
        description=(
            "Previous root canal treatment visible on tooth #11. The treatment appears to be "
            "successful with no signs of infection."
        ),
        recommendation=(
            "Continue regular dental check-ups to monitor the treated tooth. "
            "No immediate action required."
        ),
    ),
)

ALL_CLEAR_SUMMARY = (
    "Your dental X-ray shows generally healthy teeth and supporting structures. "
    "No significant issues were detected."
)

ALL_CLEAR_RECOMMENDATIONS: List[str] = [
    "Continue regular dental check-ups every 6 months",
    "Maintain good oral hygiene with brushing and flossing",
    "Consider professional cleaning if not done recently",
]

FOLLOW_UP_RECOMMENDATIONS: List[str] = [
    "Schedule a dental appointment for professional evaluation",
    "Bring this report to discuss findings with your dentist",
    "Maintain good oral hygiene while waiting for appointment",
    "Monitor any symptoms like pain or sensitivity",
]

# Progress labels shown while a scan is analyzing
ANALYSIS_STEPS: Tuple[str, ...] = (
    "Initializing AI model...",
    "Loading X-ray image...",
    "Detecting tooth regions...",
    "Examining dental structures...",
    "Analyzing for cavities...",
    "Checking bone density...",
    "Detecting infections...",
    "Evaluating gum health...",
    "Generating report...",
    "Finalizing analysis...",
)
