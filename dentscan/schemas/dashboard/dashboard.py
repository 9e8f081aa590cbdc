# dentscan/schemas/dashboard.py
from pydantic import BaseModel, Field
from typing import List

from ..scans.scan import ScanResponse

class DashboardStats(BaseModel):
    total: int = Field(..., ge=0, description="Number of scans in the history")
    healthy: int = Field(0, ge=0)
    attention: int = Field(0, ge=0)
    urgent: int = Field(0, ge=0)

class DashboardData(BaseModel):
    status_filter: str
    query: str
    stats: DashboardStats
    scans: List[ScanResponse]

class DashboardResponse(BaseModel):
    success: bool
    data: DashboardData
