"""
Authentication Routes

POST /auth/register - Register new participant
POST /auth/login - Login and get JWT token
GET /auth/me - Get current participant
"""

from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from career_connect.db.database import get_db_session
from career_connect.core.auth import (
    hash_password, verify_password, create_access_token, get_current_participant
)
from career_connect.models import User, utcnow
from career_connect.schemas.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, Participant, StatusMessage
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=StatusMessage, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new participant account.

    After registration, login to get access token.
    """
    try:
        with get_db_session() as db:
            existing = db.execute(
                select(User.id).where(User.email == request.email)
            ).scalar_one_or_none()
            if existing is not None:
                raise HTTPException(status_code=400, detail="Email already registered")

            db.add(User(
                email=request.email,
                password_hash=hash_password(request.password),
                full_name=request.full_name,
                role=request.role.value,
                is_active=True,
                created_at=utcnow(),
            ))
    except IntegrityError:
        raise HTTPException(status_code=400, detail="Email already registered")

    return StatusMessage(message=f"Registered successfully as {request.role.value}. Please login.")


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    WebSocket endpoints take it as ?token=<token>
    """
    with get_db_session() as db:
        user = db.execute(
            select(User).where(User.email == request.email)
        ).scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account deactivated")

    if not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(data={"sub": str(user.id), "role": user.role})

    return TokenResponse(access_token=token, user_id=user.id, role=user.role)


@router.get("/me", response_model=Participant)
async def get_me(me: Participant = Depends(get_current_participant)):
    """Get current authenticated participant."""
    return me
