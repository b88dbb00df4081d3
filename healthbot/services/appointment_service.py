from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import date, datetime, time
from typing import Dict, List, Optional, Union
import calendar
import logging
import math

from ..core.exceptions import BadRequestError, ConflictError, NotFoundError
from ..models.appointment import Appointment, AppointmentStatus, ACTIVE_STATUSES
from ..models.doctor import Doctor, DoctorStatus
from ..models.user import User
from ..schemas.appointment import AppointmentBook, AppointmentStatusUpdate
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)

# Patient history windows in months; anything else falls back to the first
HISTORY_WINDOWS = (3, 6, 12)

def day_bounds(day: Union[date, datetime]):
    """Calendar-day window [00:00:00.000, 23:59:59.999] for a date or datetime."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min), datetime.combine(day, END_OF_DAY)

def months_ago(moment: datetime, months: int) -> datetime:
    years, month_index = divmod(moment.month - 1 - months, 12)
    year = moment.year + years
    month = month_index + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)

class AppointmentService:
    def __init__(self, db: Session, notifications: NotificationService = None):
        self.db = db
        self.notifications = notifications

    def has_conflict(
        self,
        doctor_id: int,
        day: Union[date, datetime],
        time_slot: str,
        exclude_id: Optional[int] = None
    ) -> bool:
        """True when the doctor already holds this exact slot label on that day.

        Only pending and confirmed appointments hold a slot. Slot labels are
        compared as plain strings, so overlapping wall-clock ranges with
        different labels do not conflict.
        """
        start, end = day_bounds(day)
        existing = self.db.query(Appointment.id).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date >= start,
            Appointment.appointment_date <= end,
            Appointment.appointment_time == time_slot,
            Appointment.status.in_(ACTIVE_STATUSES)
        )
        if exclude_id is not None:
            existing = existing.filter(Appointment.id != exclude_id)
        return existing.first() is not None

    def book_appointment(self, data: AppointmentBook, patient: Optional[User] = None) -> Appointment:
        doctor = self.db.query(Doctor).filter(Doctor.id == data.doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")

        if not doctor.is_verified:
            raise BadRequestError("Doctor is not verified yet")

        if doctor.status != DoctorStatus.APPROVED:
            raise BadRequestError("Doctor is not approved yet")

        # Check-then-insert without a storage constraint; concurrent bookings can race
        if self.has_conflict(doctor.id, data.appointment_date, data.appointment_time):
            raise ConflictError("This time slot is already booked. Please choose another time.")

        start, _ = day_bounds(data.appointment_date)
        appointment = Appointment(
            patient_id=patient.id if patient else None,
            patient_name=data.patient_name,
            patient_email=data.patient_email,
            patient_phone=data.patient_phone,
            patient_age=data.patient_age,
            patient_gender=data.patient_gender,
            doctor_id=doctor.id,
            doctor_name=doctor.name,
            doctor_email=doctor.email,
            doctor_specialization=doctor.specialization,
            doctor_hospital=doctor.hospital,
            appointment_date=start,
            appointment_time=data.appointment_time,
            reason=data.reason,
            symptoms=data.symptoms or "",
            notes=data.notes or "",
            is_urgent=data.is_urgent,
            status=AppointmentStatus.PENDING,
        )

        self.db.add(appointment)
        self.db.commit()
        self.db.refresh(appointment)

        logger.info(
            f"Booked appointment {appointment.id} with doctor {doctor.id} "
            f"on {start:%Y-%m-%d} at {appointment.appointment_time}"
        )
        return appointment

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def list_for_doctor(
        self,
        doctor_id: int,
        status: Optional[AppointmentStatus] = None,
        on_date: Optional[date] = None
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
        if status:
            query = query.filter(Appointment.status == status)
        if on_date:
            start, end = day_bounds(on_date)
            query = query.filter(
                Appointment.appointment_date >= start,
                Appointment.appointment_date <= end
            )
        return query.order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc()).all()

    def pending_for_doctor(self, doctor_id: int) -> List[Appointment]:
        return self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.status == AppointmentStatus.PENDING
        ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()

    def list_for_patient(
        self,
        patient_email: str,
        status: Optional[AppointmentStatus] = None,
        months: Optional[int] = None
    ) -> Dict[str, List[Appointment]]:
        """A patient's appointments, split into upcoming and past."""
        query = self.db.query(Appointment).filter(Appointment.patient_email == patient_email)
        if status:
            query = query.filter(Appointment.status == status)
        if months:
            if months not in HISTORY_WINDOWS:
                months = HISTORY_WINDOWS[0]
            query = query.filter(Appointment.appointment_date >= months_ago(datetime.now(), months))

        appointments = query.order_by(
            Appointment.appointment_date.desc(), Appointment.appointment_time.asc()
        ).all()

        today, _ = day_bounds(datetime.now())
        return {
            "appointments": appointments,
            "upcoming": [a for a in appointments if a.appointment_date >= today],
            "completed": [a for a in appointments if a.appointment_date < today],
        }

    def update_status(self, appointment_id: int, update: AppointmentStatusUpdate) -> Appointment:
        appointment = self.get_appointment(appointment_id)

        # Reactivating an appointment must not double-book its slot
        if update.status in ACTIVE_STATUSES and self.has_conflict(
            appointment.doctor_id,
            appointment.appointment_date,
            appointment.appointment_time,
            exclude_id=appointment.id
        ):
            raise ConflictError("This time slot is already booked. Please choose another time.")

        appointment.status = update.status
        if update.notes:
            appointment.notes = update.notes
        if update.prescription:
            appointment.prescription = update.prescription
        if update.diagnosis:
            appointment.diagnosis = update.diagnosis

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} set to {update.status.value}")
        self.notifications.send_appointment_status_email(appointment)
        return appointment

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        appointment = self.get_appointment(appointment_id)

        if appointment.status == AppointmentStatus.CANCELLED:
            raise BadRequestError("Appointment is already cancelled")

        if appointment.status == AppointmentStatus.COMPLETED:
            raise BadRequestError("Cannot cancel a completed appointment")

        appointment.status = AppointmentStatus.CANCELLED
        if reason:
            note = f"Cancellation reason: {reason}"
            appointment.notes = f"{appointment.notes}\n{note}" if appointment.notes else note

        self.db.commit()
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment.id} cancelled")
        self.notifications.send_appointment_status_email(appointment)
        return appointment

    def stats(self, doctor_id: int) -> dict:
        """Dashboard counters for one doctor."""
        base = self.db.query(Appointment).filter(Appointment.doctor_id == doctor_id)
        start, end = day_bounds(datetime.now())

        by_status = {s.value: 0 for s in AppointmentStatus}
        rows = self.db.query(Appointment.status, func.count(Appointment.id)).filter(
            Appointment.doctor_id == doctor_id
        ).group_by(Appointment.status).all()
        for status, count in rows:
            by_status[AppointmentStatus(status).value] = count

        today = base.filter(
            Appointment.appointment_date >= start,
            Appointment.appointment_date <= end
        )

        return {
            "total": base.count(),
            "today": today.count(),
            "confirmed_today": today.filter(Appointment.status == AppointmentStatus.CONFIRMED).count(),
            "completed": by_status[AppointmentStatus.COMPLETED.value],
            "pending": by_status[AppointmentStatus.PENDING.value],
            "upcoming": base.filter(
                Appointment.appointment_date >= start,
                Appointment.status.in_(ACTIVE_STATUSES)
            ).count(),
            "by_status": by_status,
        }

    def list_all(
        self,
        status: Optional[AppointmentStatus] = None,
        doctor_id: Optional[int] = None,
        patient_email: Optional[str] = None,
        page: int = 1,
        limit: int = 10
    ) -> dict:
        query = self.db.query(Appointment)
        if status:
            query = query.filter(Appointment.status == status)
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if patient_email:
            query = query.filter(Appointment.patient_email == patient_email)

        total = query.count()
        appointments = query.order_by(
            Appointment.created_at.desc(), Appointment.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return {
            "appointments": appointments,
            "pagination": {
                "current": page,
                "pages": math.ceil(total / limit) if limit else 0,
                "total": total,
            },
        }
