from pydantic import BaseModel, EmailStr, Field
from typing import Dict, List, Literal, Optional
from datetime import date, datetime

from ..models.appointment import AppointmentStatus
from .auth import PHONE_PATTERN

class AppointmentBook(BaseModel):
    patient_name: str = Field(..., min_length=1)
    patient_email: EmailStr
    patient_phone: str = Field(..., pattern=PHONE_PATTERN)
    patient_age: int = Field(..., ge=0, le=150)
    patient_gender: Literal["Male", "Female", "Other"]
    doctor_id: int
    appointment_date: date
    appointment_time: str = Field(..., min_length=1, max_length=20)
    reason: str = Field(..., min_length=1)
    symptoms: str = ""
    notes: str = ""
    is_urgent: bool = False

class AppointmentSummary(BaseModel):
    id: int
    patient_name: str
    doctor_name: str
    appointment_date: datetime
    appointment_time: str
    status: AppointmentStatus

    class Config:
        from_attributes = True

class BookingResponse(BaseModel):
    message: str
    appointment: AppointmentSummary

class AppointmentResponse(BaseModel):
    id: int
    patient_id: Optional[int] = None
    patient_name: str
    patient_email: str
    patient_phone: str
    patient_age: int
    patient_gender: str
    doctor_id: int
    doctor_name: str
    doctor_email: str
    doctor_specialization: str
    doctor_hospital: str
    appointment_date: datetime
    appointment_time: str
    status: AppointmentStatus
    reason: str
    symptoms: Optional[str] = ""
    notes: Optional[str] = ""
    is_urgent: bool = False
    follow_up_required: bool = False
    prescription: Optional[str] = ""
    medicines: Optional[str] = ""
    diagnosis: Optional[str] = ""
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    notes: Optional[str] = None
    prescription: Optional[str] = None
    diagnosis: Optional[str] = None

class AppointmentCancel(BaseModel):
    reason: Optional[str] = None

class AppointmentList(BaseModel):
    appointments: List[AppointmentResponse]
    count: int

class PatientAppointmentList(AppointmentList):
    upcoming_appointments: List[AppointmentResponse]
    completed_appointments: List[AppointmentResponse]
    upcoming_count: int
    completed_count: int

class Pagination(BaseModel):
    current: int
    pages: int
    total: int

class PaginatedAppointments(BaseModel):
    appointments: List[AppointmentResponse]
    pagination: Pagination

class AppointmentStats(BaseModel):
    total: int
    today: int
    confirmed_today: int
    completed: int
    pending: int
    upcoming: int
    by_status: Dict[str, int]
