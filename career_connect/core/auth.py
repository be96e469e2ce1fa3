"""
Authentication Utility - JWT, password hashing and the identity resolver.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- resolve_participant(): token -> Participant (HTTP and WebSocket)
- FastAPI dependency for protected routes
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from career_connect.core.config import get_settings
from career_connect.core.errors import Unauthenticated
from career_connect.db.database import get_db_session
from career_connect.models import User
from career_connect.schemas.schemas import Participant

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor (missing header is reported by us, as 401)
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def resolve_participant(token: Optional[str]) -> Participant:
    """
    Map a bearer token to the participant it identifies.

    Raises Unauthenticated when the token is missing, invalid or expired, or
    the participant no longer exists or is deactivated.
    """
    if not token:
        raise Unauthenticated("Not authenticated")

    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        raise Unauthenticated()

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthenticated()

    with get_db_session() as db:
        user = db.get(User, user_id)
        if user is None or not user.is_active:
            raise Unauthenticated()
        return Participant.model_validate(user)


async def get_current_participant(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Participant:
    """
    FastAPI dependency - Get current authenticated participant.

    Usage:
        @app.get("/protected")
        async def route(me: Participant = Depends(get_current_participant)):
            return me
    """
    return resolve_participant(credentials.credentials if credentials else None)
