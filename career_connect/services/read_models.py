"""
Read models - joined, display-ready views of conversations and requests.

Nothing here is stored: summaries reflect the message log tail and profile
data at read time.
"""

import logging
from typing import Dict, Iterable, List, Optional
from pymongo.errors import PyMongoError
from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session, aliased

from career_connect.models import Conversation, InterviewRequest, Message, User
from career_connect.schemas.schemas import (
    ConversationSummary, EnrichedRequest, Participant, RequestStatus
)
from career_connect.services.profile_service import RoleProfileService

logger = logging.getLogger(__name__)


# ============================================================
# CONVERSATIONS
# ============================================================

def conversation_summaries(
    db: Session,
    me: Participant,
    conversation_id: Optional[int] = None,
) -> List[ConversationSummary]:
    """
    Summaries of the caller's conversations, most recent activity first.

    Each carries the other participant and the current tail message.
    """
    other = aliased(User)
    other_id = case(
        (Conversation.user1_id == me.id, Conversation.user2_id),
        else_=Conversation.user1_id,
    )
    last_message = (
        select(Message.content)
        .where(Message.conversation_id == Conversation.id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(1)
        .correlate(Conversation)
        .scalar_subquery()
    )

    stmt = (
        select(Conversation, other, last_message.label("last_message"))
        .join(other, other.id == other_id)
        .where(or_(Conversation.user1_id == me.id, Conversation.user2_id == me.id))
    )
    if conversation_id is not None:
        stmt = stmt.where(Conversation.id == conversation_id)
    stmt = stmt.order_by(
        func.coalesce(Conversation.last_message_at, Conversation.created_at).desc(),
        Conversation.id.desc(),
    )

    return [
        ConversationSummary(
            id=conversation.id,
            other_user=Participant.model_validate(other_user),
            last_message=content,
            last_message_at=conversation.last_message_at,
            created_at=conversation.created_at,
        )
        for conversation, other_user, content in db.execute(stmt).all()
    ]


# ============================================================
# INTERVIEW REQUESTS
# ============================================================

def request_actions(request: InterviewRequest, viewer_id: int) -> List[str]:
    """Actions offered to viewer: only the student, only while pending."""
    if request.status == RequestStatus.pending.value and viewer_id == request.student_id:
        return ["accept", "reject"]
    return []


def participant_names(db: Session, requests: Iterable[InterviewRequest]) -> Dict[int, str]:
    """Full names of both parties of each request, by participant id."""
    user_ids = set()
    for r in requests:
        user_ids.update((r.job_giver_id, r.student_id))
    if not user_ids:
        return {}
    return dict(db.execute(select(User.id, User.full_name).where(User.id.in_(user_ids))).all())


def company_names(profiles: RoleProfileService, job_giver_ids: Iterable[int]) -> Dict[int, str]:
    """
    Company names from the profile store. Blocking: call it off the event loop.
    """
    try:
        return profiles.company_names(job_giver_ids)
    except PyMongoError as e:
        # Company names are optional; an outage leaves them unset
        logger.warning("Profile store unavailable, omitting company names: %s", e)
        return {}


def request_views(
    requests: Iterable[InterviewRequest],
    viewer_id: int,
    names: Dict[int, str],
    companies: Dict[int, str],
) -> List[EnrichedRequest]:
    """Attach counterpart names, the job giver's company and viewer actions."""
    return [
        EnrichedRequest(
            id=r.id,
            job_giver_id=r.job_giver_id,
            student_id=r.student_id,
            message=r.message,
            status=r.status,
            created_at=r.created_at,
            updated_at=r.updated_at,
            job_giver_name=names.get(r.job_giver_id),
            job_giver_company=companies.get(r.job_giver_id),
            student_name=names.get(r.student_id),
            actions=request_actions(r, viewer_id),
        )
        for r in requests
    ]
