"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity, plus the
read-model value types (ConversationSummary, EnrichedRequest) and the
realtime event envelope.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    job_giver = "job_giver"
    mentor = "mentor"


class RequestStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class AssistantRole(str, Enum):
    user = "user"
    assistant = "assistant"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=2, max_length=100)
    role: UserRole

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str


# ============================================================
# PARTICIPANT / PROFILE SCHEMAS
# ============================================================

class Participant(BaseModel):
    """Stable identity of a platform user, passed into every core operation."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    full_name: str
    role: UserRole

class RoleProfileUpsert(BaseModel):
    fields: Dict[str, Any] = Field(default_factory=dict)

class ProfileResponse(BaseModel):
    participant: Participant
    fields: Dict[str, Any] = {}


# ============================================================
# CONVERSATION SCHEMAS
# ============================================================

class ConversationCreate(BaseModel):
    participant_id: int

class ConversationRef(BaseModel):
    conversation_id: int
    created: bool

class ConversationSummary(BaseModel):
    id: int
    other_user: Participant
    last_message: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: datetime


# ============================================================
# MESSAGE SCHEMAS
# ============================================================

MAX_MESSAGE_LENGTH = 5000

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=MAX_MESSAGE_LENGTH)

class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_id: int
    content: str
    created_at: datetime


# ============================================================
# INTERVIEW REQUEST SCHEMAS
# ============================================================

class InterviewRequestCreate(BaseModel):
    student_id: int
    message: str = Field(..., max_length=2000)

class InterviewStatusUpdate(BaseModel):
    status: RequestStatus

class EnrichedRequest(BaseModel):
    id: int
    job_giver_id: int
    student_id: int
    message: str
    status: RequestStatus
    created_at: datetime
    updated_at: datetime
    job_giver_name: Optional[str] = None
    job_giver_company: Optional[str] = None
    student_name: Optional[str] = None
    actions: List[str] = []


# ============================================================
# REALTIME SCHEMAS
# ============================================================

class RealtimeEvent(BaseModel):
    type: str
    topic: str
    payload: Dict[str, Any]
    published_at: datetime


# ============================================================
# ASSISTANT SCHEMAS
# ============================================================

class AssistantMessage(BaseModel):
    role: AssistantRole
    content: str = Field(..., min_length=1, max_length=4000)

class AssistantChatRequest(BaseModel):
    messages: List[AssistantMessage] = Field(..., min_length=1, max_length=50)


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class StatusMessage(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
    error: str
