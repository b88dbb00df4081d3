from sqlalchemy import or_
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.exceptions import NotFoundError
from ..models.doctor import Doctor, DoctorStatus
from ..models.user import User
from ..schemas.doctor import DoctorResponse, DoctorUpdate
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

GENERAL_PRACTICE_TERMS = ("general", "family", "primary")

class DoctorDirectory:
    """Lookup of approved, verified doctors used for recommendations."""

    def __init__(self, db: Session):
        self.db = db

    def _available(self):
        return self.db.query(Doctor).join(User).filter(
            User.is_verified == True,
            User.is_active == True,
            Doctor.status == DoctorStatus.APPROVED
        )

    def find_by_specialization(self, specialization: str, limit: int = 3) -> List[DoctorResponse]:
        doctors = self._available().filter(
            Doctor.specialization.ilike(f"%{specialization}%")
        ).order_by(Doctor.id).limit(limit).all()
        return [DoctorResponse.from_orm(doctor) for doctor in doctors]

    def find_general_practitioner(self) -> Optional[DoctorResponse]:
        doctor = self._available().filter(
            or_(*[Doctor.specialization.ilike(f"%{term}%") for term in GENERAL_PRACTICE_TERMS])
        ).order_by(Doctor.id).first()
        return DoctorResponse.from_orm(doctor) if doctor else None

class DoctorService:
    def __init__(self, db: Session, notifications: NotificationService = None):
        self.db = db
        self.notifications = notifications

    def get_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def list_verified_doctors(self, specialization: Optional[str] = None) -> List[Doctor]:
        """Doctors whose email is verified, newest first."""
        query = self.db.query(Doctor).join(User).filter(User.is_verified == True)
        if specialization:
            query = query.filter(Doctor.specialization.ilike(f"%{specialization}%"))
        return query.order_by(Doctor.created_at.desc(), Doctor.id.desc()).all()

    def list_pending_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).join(User).filter(
            User.is_verified == True,
            Doctor.status == DoctorStatus.PENDING
        ).order_by(Doctor.created_at.asc(), Doctor.id.asc()).all()

    def update_doctor(self, doctor_id: int, update: DoctorUpdate) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(doctor, field, value)
        self.db.commit()
        self.db.refresh(doctor)
        return doctor

    def approve_doctor(self, doctor_id: int) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        doctor.status = DoctorStatus.APPROVED
        doctor.rejection_reason = None
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor.id} ({doctor.email}) approved")
        self.notifications.send_doctor_approval_email(doctor.email, doctor.name)
        return doctor

    def reject_doctor(self, doctor_id: int, reason: Optional[str] = None) -> Doctor:
        doctor = self.get_doctor(doctor_id)
        doctor.status = DoctorStatus.REJECTED
        doctor.rejection_reason = reason
        self.db.commit()
        self.db.refresh(doctor)

        logger.info(f"Doctor {doctor.id} ({doctor.email}) rejected")
        self.notifications.send_doctor_rejection_email(doctor.email, doctor.name, reason)
        return doctor
