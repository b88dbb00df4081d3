from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from ..models.doctor import DoctorStatus
from .auth import PHONE_PATTERN

class DoctorResponse(BaseModel):
    id: int
    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    specialization: str
    experience: str
    hospital: str
    phone: str
    location: str
    status: DoctorStatus
    is_verified: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class DoctorUpdate(BaseModel):
    """Editable profile fields; account and approval fields are not accepted."""
    specialization: Optional[str] = Field(None, min_length=1)
    experience: Optional[str] = Field(None, min_length=1)
    hospital: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    location: Optional[str] = Field(None, min_length=1)

class DoctorRejection(BaseModel):
    reason: Optional[str] = None
