# dentscan/schemas/scan.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from enum import Enum

from ..analysis.analysis import AnalysisResult

class AgeRange(str, Enum):
    CHILD = "0-17"
    YOUNG_ADULT = "18-30"
    ADULT = "31-50"
    MIDDLE_AGED = "51-70"
    SENIOR = "70+"

class ScanStatus(str, Enum):
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

# Conditions offered by the upload form; other labels are accepted as well
MEDICAL_HISTORY_OPTIONS = ["Diabetes", "Heart Disease", "Previous Dental Surgery", "Gum Disease"]

class PatientInfo(BaseModel):
    name: Optional[str] = Field(None, description="Patient name")
    age_range: Optional[AgeRange] = Field(None, description="Age bucket")
    medical_history: List[str] = Field(default_factory=list, description="Condition labels")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("medical_history")
    @classmethod
    def dedupe_history(cls, v):
        # Behaves as a set but keeps the order the conditions were ticked in
        seen = []
        for item in v:
            label = item.strip()
            if label and label not in seen:
                seen.append(label)
        return seen

    def is_empty(self) -> bool:
        return self.name is None and self.age_range is None and not self.medical_history

class AnalysisProgress(BaseModel):
    percent: int = Field(..., ge=0, le=100)
    step_index: int = Field(..., ge=0)
    step: str
    completed_steps: List[str] = Field(default_factory=list)

class ScanResponse(BaseModel):
    id: str
    image_url: str
    file_name: str
    file_size: int
    upload_date: str
    patient_info: Optional[PatientInfo] = None
    status: ScanStatus
    analysis_results: Optional[AnalysisResult] = None
    failure_reason: Optional[str] = None
    cancelled: bool = False
    progress: Optional[AnalysisProgress] = None
