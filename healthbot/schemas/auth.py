from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

from ..core.security import UserRole

PHONE_PATTERN = r"^\d{10}$"
OTP_PATTERN = r"^\d{6}$"

class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.PATIENT

    # Required when registering as a doctor
    specialization: Optional[str] = None
    experience: Optional[str] = None
    hospital: Optional[str] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    location: Optional[str] = None

    @field_validator("role")
    @classmethod
    def role_must_be_self_registrable(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Invalid role. Must be patient or doctor.")
        return v

    @model_validator(mode="after")
    def doctor_fields_required(self):
        if self.role == UserRole.DOCTOR:
            missing = [
                field for field in ("specialization", "experience", "hospital", "phone", "location")
                if not getattr(self, field)
            ]
            if missing:
                raise ValueError(
                    "Please provide all required doctor information: " + ", ".join(missing)
                )
        return self

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class VerifyOTP(BaseModel):
    email: EmailStr
    otp: str = Field(..., pattern=OTP_PATTERN)

class ResendOTP(BaseModel):
    email: EmailStr

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class UserResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    is_verified: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RegistrationResponse(BaseModel):
    message: str
    email: EmailStr
    role: UserRole

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
