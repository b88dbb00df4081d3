from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import (
    get_current_user, get_current_user_token, get_notification_service,
    otp_rate_limit, resend_otp_rate_limit
)
from ...services.auth_service import AuthService
from ...services.notification_service import NotificationService
from ...schemas.auth import (
    UserLogin, UserRegister, TokenResponse, UserResponse, RegistrationResponse,
    RefreshTokenRequest, VerifyOTP, ResendOTP
)
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    _: None = Depends(otp_rate_limit)
):
    """Register a patient or doctor; a verification code is emailed."""
    auth_service = AuthService(db, notifications)
    user = auth_service.register_user(user_data)

    return RegistrationResponse(
        message="Registration successful. Please check your email for verification code.",
        email=user.email,
        role=user.role
    )

@router.post("/verify-otp", response_model=UserResponse)
async def verify_otp(
    otp_data: VerifyOTP,
    db: Session = Depends(get_db)
):
    """Verify the emailed code and activate the account."""
    auth_service = AuthService(db)
    user = auth_service.verify_otp(otp_data.email, otp_data.otp)
    return UserResponse.from_orm(user)

@router.post("/resend-otp")
async def resend_otp(
    resend_data: ResendOTP,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
    _: None = Depends(resend_otp_rate_limit)
):
    """Send a new verification code."""
    auth_service = AuthService(db, notifications)
    auth_service.resend_otp(resend_data.email)

    return {"message": "New verification code sent to your email."}

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
):
    """Authenticate user and return access tokens."""
    auth_service = AuthService(db)
    return auth_service.authenticate_user(login_data)

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Refresh access token using refresh token."""
    auth_service = AuthService(db)
    return auth_service.refresh_access_token(refresh_data.refresh_token)

@router.post("/logout")
async def logout(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Logout user by revoking refresh token."""
    auth_service = AuthService(db)
    success = auth_service.logout_user(refresh_data.refresh_token)

    return {"message": "Successfully logged out" if success else "Logout completed"}

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.from_orm(current_user)

@router.post("/verify-token")
async def verify_token_endpoint(
    token_payload = Depends(get_current_user_token)
):
    """Verify if token is valid."""
    return {
        "valid": True,
        "user_id": token_payload.sub,
        "email": token_payload.email,
        "role": token_payload.role,
        "expires": token_payload.exp
    }
