"""
Conversation Directory - one durable conversation per participant pair.

find_or_create relies on the UNIQUE pair_key constraint: when two callers
race to create the same pair, the loser's insert fails with an integrity
error, its transaction rolls back, and it re-reads the winner's row.
"""

import logging
from typing import List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from career_connect.core.errors import InvalidRequest, NotFound
from career_connect.db.database import get_db_session
from career_connect.models import Conversation, User, pair_key, utcnow
from career_connect.schemas.schemas import ConversationSummary, Participant, UserRole
from career_connect.services.read_models import conversation_summaries

logger = logging.getLogger(__name__)

# Lookups after a lost insert race before giving up
MAX_CREATE_ATTEMPTS = 3


def compatible_roles(role: UserRole) -> List[str]:
    """Roles a participant may start a conversation with."""
    if role == UserRole.student:
        return [UserRole.job_giver.value, UserRole.mentor.value]
    return [UserRole.student.value]


class ConversationService:

    def _lookup(self, key: str) -> Optional[int]:
        with get_db_session() as db:
            return db.execute(
                select(Conversation.id).where(Conversation.pair_key == key)
            ).scalar_one_or_none()

    def find_or_create(self, me: Participant, other_id: int) -> Tuple[int, bool]:
        """
        Return the id of the conversation between me and other_id, creating
        it on first contact.

        Returns:
            (conversation_id, created)
        """
        if other_id == me.id:
            raise InvalidRequest("Cannot start a conversation with yourself")

        key = pair_key(me.id, other_id)
        for attempt in range(MAX_CREATE_ATTEMPTS):
            existing = self._lookup(key)
            if existing is not None:
                return existing, False

            try:
                with get_db_session() as db:
                    other = db.get(User, other_id)
                    if other is None or not other.is_active:
                        raise NotFound("Participant not found")

                    conversation = Conversation(
                        user1_id=me.id,
                        user2_id=other_id,
                        pair_key=key,
                        created_at=utcnow(),
                    )
                    db.add(conversation)
                    db.flush()
                    conversation_id = conversation.id
            except IntegrityError:
                logger.info("Lost creation race for pair %s (attempt %d), re-reading", key, attempt + 1)
                continue

            logger.info("Conversation %s created between %s and %s", conversation_id, me.id, other_id)
            return conversation_id, True

        # The winner's row must be visible by now
        existing = self._lookup(key)
        if existing is None:
            raise RuntimeError(f"Conversation for pair {key} vanished after insert race")
        return existing, False

    def list_for(self, me: Participant) -> List[ConversationSummary]:
        """Caller's conversations with last-message summaries, most recent first."""
        with get_db_session() as db:
            return conversation_summaries(db, me)

    def get(self, me: Participant, conversation_id: int) -> ConversationSummary:
        """Single conversation summary; invisible to non-participants."""
        with get_db_session() as db:
            summaries = conversation_summaries(db, me, conversation_id=conversation_id)
        if not summaries:
            raise NotFound("Conversation not found")
        return summaries[0]

    def list_candidates(self, me: Participant) -> List[Participant]:
        """
        Participants the caller may start a new conversation with.

        student -> job givers and mentors; job giver / mentor -> students.
        Anyone already in a conversation with the caller is excluded.
        """
        with get_db_session() as db:
            partners = select(Conversation.user2_id).where(Conversation.user1_id == me.id).union(
                select(Conversation.user1_id).where(Conversation.user2_id == me.id)
            )
            users = db.execute(
                select(User)
                .where(
                    User.role.in_(compatible_roles(me.role)),
                    User.is_active.is_(True),
                    User.id != me.id,
                    User.id.not_in(partners),
                )
                .order_by(User.full_name, User.id)
            ).scalars().all()
            return [Participant.model_validate(u) for u in users]


# Singleton instance
_conversation_service: ConversationService = None


def get_conversation_service() -> ConversationService:
    global _conversation_service
    if _conversation_service is None:
        _conversation_service = ConversationService()
    return _conversation_service
