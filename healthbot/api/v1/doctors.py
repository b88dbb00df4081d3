from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from ...core.database import get_db
from ...core.security import AuthorizationError, UserRole
from ...api.deps import get_doctor_user
from ...services.doctor_service import DoctorService
from ...schemas.doctor import DoctorResponse, DoctorUpdate
from ...models.user import User

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse])
async def list_doctors(
    specialization: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List verified doctors, optionally filtered by specialization."""
    doctors = DoctorService(db).list_verified_doctors(specialization)
    return [DoctorResponse.from_orm(doctor) for doctor in doctors]

@router.get("/{doctor_id}", response_model=DoctorResponse)
async def get_doctor(
    doctor_id: int,
    db: Session = Depends(get_db)
):
    return DoctorResponse.from_orm(DoctorService(db).get_doctor(doctor_id))

@router.put("/{doctor_id}", response_model=DoctorResponse)
async def update_doctor(
    doctor_id: int,
    update: DoctorUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_doctor_user)
):
    """Update profile fields (the doctor themself or an admin)."""
    doctor_service = DoctorService(db)
    doctor = doctor_service.get_doctor(doctor_id)

    if current_user.role != UserRole.ADMIN and doctor.user_id != current_user.id:
        raise AuthorizationError("You can only update your own profile")

    return DoctorResponse.from_orm(doctor_service.update_doctor(doctor_id, update))
