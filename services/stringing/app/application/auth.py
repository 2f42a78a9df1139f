from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from fastapi import Depends, HTTPException, Request

from app.core_settings import Settings, get_settings
from app.domain.errors import UnauthenticatedError, UnauthorizedError
from shared.core import get_logger, set_request_context

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "
ADMIN_ROLE = "admin"

@dataclass(frozen=True)
class Identity:
    subject: str
    email: Optional[str]
    email_verified: bool
    role: Optional[str] = None

def create_access_token(
    subject: str,
    email: Optional[str] = None,
    email_verified: bool = True,
    role: Optional[str] = None,
    expires_minutes: int = 60,
    settings: Optional[Settings] = None,
) -> str:
    """Mints a token shaped like the identity provider's session tokens."""
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "email": email,
        "email_verified": email_verified,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if role:
        payload["metadata"] = {"role": role}
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_identity(token: str, settings: Optional[Settings] = None) -> Optional[Identity]:
    settings = settings or get_settings()
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
    except jwt.PyJWTError:
        return None
    metadata = claims.get("metadata") or {}
    return Identity(
        subject=str(claims.get("sub", "")),
        email=claims.get("email"),
        email_verified=bool(claims.get("email_verified", False)),
        role=metadata.get("role") if isinstance(metadata, dict) else None,
    )

def check_admin(identity: Optional[Identity], settings: Optional[Settings] = None) -> Identity:
    settings = settings or get_settings()
    if identity is None:
        raise UnauthenticatedError("Unauthenticated: Please sign in.")
    if not identity.email_verified:
        raise UnauthorizedError("Unauthorized: Email must be verified.")

    is_admin_role = identity.role == ADMIN_ROLE
    is_admin_email = (identity.email or "").lower() in settings.admin_emails
    if not is_admin_role and not is_admin_email:
        logger.error(
            f"Security alert: unauthorized admin access attempt by {identity.email}",
            extra={'extra_fields': {'subject': identity.subject}}
        )
        raise UnauthorizedError("Unauthorized: Admin access required.")
    return identity

def current_identity(request: Request, settings: Settings = Depends(get_settings)) -> Optional[Identity]:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        return None
    return decode_identity(auth_header[len(BEARER_PREFIX):], settings)

def require_admin(
    identity: Optional[Identity] = Depends(current_identity),
    settings: Settings = Depends(get_settings),
) -> Identity:
    try:
        admin = check_admin(identity, settings)
    except (UnauthenticatedError, UnauthorizedError) as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    set_request_context(user_id=admin.subject)
    return admin
