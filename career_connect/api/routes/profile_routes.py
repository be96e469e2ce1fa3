"""
Profile Routes

GET /profiles?role=student - Browse participants of a role with their profile fields
PUT /profiles/me - Upsert own role-specific profile fields
GET /profiles/{participant_id} - Get a participant with profile fields

MongoDB calls run in the worker threadpool so a slow profile store never
stalls live delivery on the event loop.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from typing import List

from career_connect.core.auth import get_current_participant
from career_connect.core.errors import NotFound
from career_connect.db.database import get_db_session
from career_connect.models import User
from career_connect.schemas.schemas import Participant, ProfileResponse, RoleProfileUpsert, UserRole
from career_connect.services.profile_service import get_profile_service

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("", response_model=List[ProfileResponse])
async def browse_profiles(
    role: UserRole = Query(UserRole.student, description="Role to browse"),
    me: Participant = Depends(get_current_participant)
):
    """
    Profile directory: every active participant of the role, by name.

    Unlike /conversations/candidates, people you already talk to are included.
    """
    return await run_in_threadpool(get_profile_service().browse, role)


@router.put("/me", response_model=ProfileResponse)
async def upsert_my_profile(data: RoleProfileUpsert, me: Participant = Depends(get_current_participant)):
    """Replace the caller's role-specific fields (e.g. company_name for job givers)."""
    doc = await run_in_threadpool(get_profile_service().upsert, me.id, me.role.value, data.fields)
    return ProfileResponse(participant=me, fields=doc.get("fields", {}))


@router.get("/{participant_id}", response_model=ProfileResponse)
async def get_profile(participant_id: int, me: Participant = Depends(get_current_participant)):
    """Get a participant's identity and role-specific fields."""
    with get_db_session() as db:
        user = db.get(User, participant_id)
        if user is None or not user.is_active:
            raise NotFound("Participant not found")
        participant = Participant.model_validate(user)

    fields = await run_in_threadpool(get_profile_service().get_fields, participant_id)
    return ProfileResponse(participant=participant, fields=fields)
