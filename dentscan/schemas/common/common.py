# dentscan/schemas/common.py
from pydantic import BaseModel
from typing import Optional

class ErrorResponse(BaseModel):
    success: bool = False
    data: None = None
    error: str

class CancelResponse(BaseModel):
    scan_id: str
    cancelled: bool
    message: Optional[str] = None
