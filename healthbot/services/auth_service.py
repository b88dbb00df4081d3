from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta
import hashlib
import logging

from ..models.user import User, RefreshToken
from ..models.doctor import Doctor, DoctorStatus
from ..core.config import settings
from ..core.exceptions import (
    BadRequestError, ConflictError, EmailDeliveryError, NotFoundError,
    ServiceUnavailableError
)
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, UserRole, generate_otp, otp_expiry
)
from ..schemas.auth import UserLogin, UserRegister, TokenResponse, UserResponse
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session, notifications: NotificationService = None):
        self.db = db
        self.notifications = notifications

    def register_user(self, user_data: UserRegister) -> User:
        """Register a patient or doctor and email them a verification code."""
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()

        if existing_user:
            raise ConflictError("User already registered with this email.")

        otp = generate_otp()
        new_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            role=user_data.role,
            is_active=True,
            is_verified=False,  # Require email verification
            otp_code=otp,
            otp_expires_at=otp_expiry(),
        )

        if user_data.role == UserRole.DOCTOR:
            new_user.doctor = Doctor(
                specialization=user_data.specialization,
                experience=user_data.experience,
                hospital=user_data.hospital,
                phone=user_data.phone,
                location=user_data.location,
                status=DoctorStatus.PENDING,
            )

        self.db.add(new_user)
        self.db.commit()
        self.db.refresh(new_user)

        try:
            self.notifications.send_otp_email(new_user.email, otp, new_user.name)
        except EmailDeliveryError:
            # An account nobody can verify is useless; let the user retry
            self.db.delete(new_user)
            self.db.commit()
            raise ServiceUnavailableError("Failed to send verification email. Please try again.")

        logger.info(f"Registered {new_user.role.value} account {new_user.email}")
        return new_user

    def verify_otp(self, email: str, otp: str) -> User:
        """Mark an account verified when the code matches and has not expired."""
        user = self._get_by_email(email)

        if user.is_verified:
            raise BadRequestError("Email is already verified.")

        if not user.otp_code:
            raise BadRequestError("No OTP found. Please request a new one.")

        if user.otp_expires_at < datetime.utcnow():
            raise BadRequestError("OTP has expired. Please request a new one.")

        if user.otp_code != otp:
            raise BadRequestError("Invalid OTP. Please try again.")

        user.is_verified = True
        user.otp_code = None
        user.otp_expires_at = None
        self.db.commit()
        self.db.refresh(user)

        return user

    def resend_otp(self, email: str) -> None:
        """Issue a fresh verification code."""
        user = self._get_by_email(email)

        if user.is_verified:
            raise BadRequestError("Email is already verified.")

        otp = generate_otp()
        user.otp_code = otp
        user.otp_expires_at = otp_expiry()
        self.db.commit()

        try:
            self.notifications.send_otp_email(user.email, otp, user.name)
        except EmailDeliveryError:
            raise ServiceUnavailableError("Failed to send verification email. Please try again.")

    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()

        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password."
            )

        if not user.is_verified:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Please verify your email before logging in."
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )

        # Doctors may only sign in once an admin has approved them
        if user.role == UserRole.DOCTOR and (
            not user.doctor or user.doctor.status != DoctorStatus.APPROVED
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Your account is pending admin approval"
            )

        user.last_login = datetime.utcnow()

        tokens = create_token_pair(user.id, user.email, user.role)
        self._store_refresh_token(user.id, tokens.refresh_token)

        self.db.commit()

        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=UserResponse.from_orm(user)
        )

    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash,
            RefreshToken.is_revoked == False,
            RefreshToken.expires_at > datetime.utcnow()
        ).first()

        if not stored_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token"
            )

        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()

        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )

        new_tokens = create_token_pair(user.id, user.email, user.role)

        # Revoke old refresh token and store new one
        stored_token.is_revoked = True
        self._store_refresh_token(user.id, new_tokens.refresh_token)

        self.db.commit()

        return TokenResponse(
            access_token=new_tokens.access_token,
            refresh_token=new_tokens.refresh_token,
            token_type=new_tokens.token_type,
            expires_in=new_tokens.expires_in,
            user=UserResponse.from_orm(user)
        )

    def logout_user(self, refresh_token: str) -> bool:
        """Logout user by revoking refresh token."""
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == token_hash
        ).first()

        if not stored_token:
            return False

        stored_token.is_revoked = True
        self.db.commit()
        return True

    def ensure_admin_user(self) -> User:
        """Create the configured administrator account if it does not exist yet."""
        admin = self.db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
        if admin:
            return admin

        admin = User(
            name=settings.ADMIN_NAME,
            email=settings.ADMIN_EMAIL,
            password_hash=get_password_hash(settings.ADMIN_PASSWORD),
            role=UserRole.ADMIN,
            is_active=True,
            is_verified=True,
        )
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)

        logger.info(f"Created administrator account {admin.email}")
        return admin

    def _get_by_email(self, email: str) -> User:
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            raise NotFoundError("User not found.")
        return user

    def _store_refresh_token(self, user_id: int, refresh_token: str):
        """Store refresh token in database."""
        token_hash = hashlib.sha256(refresh_token.encode()).hexdigest()

        token_payload = verify_token(refresh_token)
        expires_at = datetime.utcfromtimestamp(token_payload.exp) if token_payload and token_payload.exp else datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

        # One live refresh token per user
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})

        new_token = RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            expires_at=expires_at
        )

        self.db.add(new_token)
