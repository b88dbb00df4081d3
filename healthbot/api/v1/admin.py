from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...api.deps import get_admin_user, get_notification_service
from ...services.doctor_service import DoctorService
from ...services.notification_service import NotificationService
from ...schemas.doctor import DoctorRejection, DoctorResponse

# Every route here requires the admin role
router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(get_admin_user)]
)

@router.get("/doctors/pending", response_model=List[DoctorResponse])
async def get_pending_doctors(db: Session = Depends(get_db)):
    """Verified doctors waiting for approval."""
    doctors = DoctorService(db).list_pending_doctors()
    return [DoctorResponse.from_orm(doctor) for doctor in doctors]

@router.get("/doctors", response_model=List[DoctorResponse])
async def get_all_doctors(db: Session = Depends(get_db)):
    doctors = DoctorService(db).list_verified_doctors()
    return [DoctorResponse.from_orm(doctor) for doctor in doctors]

@router.post("/doctors/{doctor_id}/approve")
async def approve_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service)
):
    doctor = DoctorService(db, notifications).approve_doctor(doctor_id)
    return {
        "message": "Doctor approved successfully",
        "doctor": DoctorResponse.from_orm(doctor)
    }

@router.post("/doctors/{doctor_id}/reject")
async def reject_doctor(
    doctor_id: int,
    rejection: Optional[DoctorRejection] = None,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service)
):
    doctor = DoctorService(db, notifications).reject_doctor(
        doctor_id, rejection.reason if rejection else None
    )
    return {
        "message": "Doctor rejected successfully",
        "doctor": DoctorResponse.from_orm(doctor)
    }
