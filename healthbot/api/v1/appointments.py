from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from ...core.database import get_db
from ...core.security import AuthorizationError, UserRole
from ...api.deps import (
    booking_rate_limit, ensure_doctor_access, get_admin_user, get_current_user,
    get_current_user_optional, get_doctor_user, get_notification_service
)
from ...models.appointment import Appointment, AppointmentStatus
from ...models.user import User
from ...services.appointment_service import AppointmentService
from ...services.notification_service import NotificationService
from ...schemas.appointment import (
    AppointmentBook, AppointmentCancel, AppointmentList, AppointmentResponse,
    AppointmentStats, AppointmentStatusUpdate, AppointmentSummary, BookingResponse,
    PaginatedAppointments, PatientAppointmentList
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

def _is_participant(user: User, appointment: Appointment) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.DOCTOR:
        return bool(user.doctor and user.doctor.id == appointment.doctor_id)
    return appointment.patient_id == user.id or appointment.patient_email == user.email

def _as_list(appointments) -> AppointmentList:
    return AppointmentList(
        appointments=[AppointmentResponse.from_orm(a) for a in appointments],
        count=len(appointments)
    )

@router.post("/book", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    booking: AppointmentBook,
    db: Session = Depends(get_db),
    patient: Optional[User] = Depends(get_current_user_optional),
    _: None = Depends(booking_rate_limit)
):
    """Book a slot with a doctor; rejected with 409 when the slot is taken."""
    appointment = AppointmentService(db).book_appointment(booking, patient)
    return BookingResponse(
        message=(
            "Appointment booked successfully. You will receive an email "
            "notification once the doctor reviews your request."
        ),
        appointment=AppointmentSummary.from_orm(appointment)
    )

@router.get("/admin/all", response_model=PaginatedAppointments)
async def get_all_appointments(
    status: Optional[AppointmentStatus] = None,
    doctor_id: Optional[int] = None,
    patient_email: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(get_admin_user)
):
    result = AppointmentService(db).list_all(status, doctor_id, patient_email, page, limit)
    return PaginatedAppointments(
        appointments=[AppointmentResponse.from_orm(a) for a in result["appointments"]],
        pagination=result["pagination"]
    )

@router.get("/doctor/{doctor_id}", response_model=AppointmentList)
async def get_doctor_appointments(
    doctor_id: int,
    status: Optional[AppointmentStatus] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    ensure_doctor_access(current_user, doctor_id)
    return _as_list(AppointmentService(db).list_for_doctor(doctor_id, status, on_date))

@router.get("/doctor/{doctor_id}/pending", response_model=AppointmentList)
async def get_doctor_pending_appointments(
    doctor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    ensure_doctor_access(current_user, doctor_id)
    return _as_list(AppointmentService(db).pending_for_doctor(doctor_id))

@router.get("/stats/{doctor_id}", response_model=AppointmentStats)
async def get_appointment_stats(
    doctor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    ensure_doctor_access(current_user, doctor_id)
    return AppointmentStats(**AppointmentService(db).stats(doctor_id))

@router.get("/patient/{patient_email}", response_model=PatientAppointmentList)
async def get_patient_appointments(
    patient_email: str,
    status: Optional[AppointmentStatus] = None,
    months: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """A patient's appointments, optionally limited to the last 3, 6 or 12 months."""
    if current_user.role != UserRole.ADMIN and current_user.email != patient_email:
        raise AuthorizationError("Access denied. You can only view your own appointments.")

    result = AppointmentService(db).list_for_patient(patient_email, status, months)
    upcoming = [AppointmentResponse.from_orm(a) for a in result["upcoming"]]
    completed = [AppointmentResponse.from_orm(a) for a in result["completed"]]

    return PatientAppointmentList(
        appointments=[AppointmentResponse.from_orm(a) for a in result["appointments"]],
        count=len(result["appointments"]),
        upcoming_appointments=upcoming,
        completed_appointments=completed,
        upcoming_count=len(upcoming),
        completed_count=len(completed)
    )

@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    appointment = AppointmentService(db).get_appointment(appointment_id)
    if not _is_participant(current_user, appointment):
        raise AuthorizationError("Access denied")
    return AppointmentResponse.from_orm(appointment)

@router.put("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_doctor_user)
):
    """Doctors manage their own appointments; admins manage any."""
    appointment_service = AppointmentService(db, notifications)
    appointment = appointment_service.get_appointment(appointment_id)
    ensure_doctor_access(current_user, appointment.doctor_id)

    return AppointmentResponse.from_orm(
        appointment_service.update_status(appointment_id, update)
    )

@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    cancel: Optional[AppointmentCancel] = None,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_user)
):
    appointment_service = AppointmentService(db, notifications)
    appointment = appointment_service.get_appointment(appointment_id)
    if not _is_participant(current_user, appointment):
        raise AuthorizationError("Access denied")

    return AppointmentResponse.from_orm(
        appointment_service.cancel(appointment_id, cancel.reason if cancel else None)
    )
