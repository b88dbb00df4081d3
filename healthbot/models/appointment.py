from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    RESCHEDULED = "rescheduled"

# Statuses that hold a doctor's time slot
ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)

    # Patient information (patient_id only when booked by a signed-in user)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    patient_name = Column(String(150), nullable=False)
    patient_email = Column(String(255), nullable=False, index=True)
    patient_phone = Column(String(20), nullable=False)
    patient_age = Column(Integer, nullable=False)
    patient_gender = Column(String(10), nullable=False)

    # Doctor information, copied at booking time
    doctor_id = Column(Integer, ForeignKey("doctors.id"), nullable=False)
    doctor_name = Column(String(150), nullable=False)
    doctor_email = Column(String(255), nullable=False)
    doctor_specialization = Column(String(100), nullable=False)
    doctor_hospital = Column(String(255), nullable=False)

    # Appointment details
    appointment_date = Column(DateTime, nullable=False, index=True)
    appointment_time = Column(String(20), nullable=False)
    status = Column(SQLEnum(AppointmentStatus), nullable=False, default=AppointmentStatus.PENDING, index=True)
    reason = Column(Text, nullable=False)
    symptoms = Column(Text, default="")
    notes = Column(Text, default="")

    # Clinical follow-up
    is_urgent = Column(Boolean, default=False)
    follow_up_required = Column(Boolean, default=False)
    prescription = Column(Text, default="")
    medicines = Column(Text, default="")
    diagnosis = Column(Text, default="")

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    doctor = relationship("Doctor", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_email='{self.patient_email}', doctor_id={self.doctor_id}, date='{self.appointment_date}', time='{self.appointment_time}')>"
