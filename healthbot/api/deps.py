from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.email import get_email_sender
from ..core.security import (
    security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload
)
from ..models.user import User
from ..services.notification_service import NotificationService

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token = credentials.credentials

    token_payload = verify_token(token)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    user.last_login = datetime.utcnow()
    db.commit()

    return user

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_user

    return role_checker

async def get_admin_user(
    current_user: User = Depends(require_role([UserRole.ADMIN]))
) -> User:
    """Require admin role."""
    return current_user

async def get_doctor_user(
    current_user: User = Depends(require_role([UserRole.DOCTOR, UserRole.ADMIN]))
) -> User:
    """Require doctor or admin role."""
    return current_user

# Optional authentication (public endpoints that may link the caller's account)
async def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token_payload = verify_token(auth_header.split(" ", 1)[1])
    if not token_payload or not token_payload.sub or token_payload.token_type != "access":
        return None

    user = db.query(User).filter(User.id == token_payload.sub).first()
    return user if user and user.is_active else None

def ensure_doctor_access(current_user: User, doctor_id: int) -> None:
    """Doctors may only act on their own records; admins on any."""
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.DOCTOR and current_user.doctor and current_user.doctor.id == doctor_id:
        return
    raise AuthorizationError("Access denied. You can only view your own appointments.")

# Notifications dependency
def get_notification_service(sender=Depends(get_email_sender)) -> NotificationService:
    return NotificationService(sender)

# Rate limiting dependency
def rate_limit(scope: str, limit_setting: str, window_setting: str):
    """Create a per-client request limiter backed by Redis counters.

    Limit and window are read from settings on every request.
    """
    async def checker(
        request: Request,
        redis_client=Depends(get_redis)
    ) -> None:
        limit = getattr(settings, limit_setting)
        window = getattr(settings, window_setting)
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{scope}:{client_ip}"

        current_requests = redis_client.get(key)
        if current_requests is None:
            redis_client.setex(key, window, 1)
        elif int(current_requests) >= limit:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        else:
            redis_client.incr(key)

    return checker

otp_rate_limit = rate_limit("otp", "OTP_RATE_LIMIT", "OTP_RATE_WINDOW_SECONDS")
resend_otp_rate_limit = rate_limit("resend_otp", "OTP_RATE_LIMIT", "OTP_RATE_WINDOW_SECONDS")
booking_rate_limit = rate_limit("booking", "BOOKING_RATE_LIMIT", "BOOKING_RATE_WINDOW_SECONDS")
