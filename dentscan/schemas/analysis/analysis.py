# dentscan/schemas/analysis.py
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Iterable, List, Optional
from enum import Enum

class Severity(str, Enum):
    HEALTHY = "healthy"
    MODERATE = "moderate"
    URGENT = "urgent"

class ReportStatus(str, Enum):
    HEALTHY = "healthy"
    ATTENTION = "attention"
    URGENT = "urgent"


def derive_status(findings: Iterable["Finding"]) -> ReportStatus:
    """Overall report status from finding severities.

    Any urgent finding makes the report urgent, otherwise any moderate finding
    makes it need attention. Findings that are all healthy (or no findings at
    all) give a healthy report.
    """
    severities = {f.severity for f in findings}
    if Severity.URGENT in severities:
        return ReportStatus.URGENT
    if Severity.MODERATE in severities:
        return ReportStatus.ATTENTION
    return ReportStatus.HEALTHY


class Finding(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier, unique within its report")
    condition: str = Field(..., description="Detected dental condition")
    location: str = Field(..., description="Anatomical location (e.g. 'Upper Right Quadrant')")
    tooth_number: Optional[str] = Field(None, description="Tooth identifier (e.g. '#14')")
    confidence: int = Field(..., ge=0, le=100, description="Detection confidence in percent")
    severity: Severity
    description: str
    recommendation: str

class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_score: int = Field(..., ge=0, le=100, description="Overall dental health score (0-100)")
    findings: List[Finding] = Field(default_factory=list, description="Findings in detection order")
    summary: str
    recommendations: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def status(self) -> ReportStatus:
        return derive_status(self.findings)

class SeverityBreakdown(BaseModel):
    healthy: int = 0
    moderate: int = 0
    urgent: int = 0
