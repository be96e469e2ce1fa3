"""
Message Log - append-only, totally ordered messages per conversation.

Order within a conversation is (created_at, id). append() first touches the
conversation row, which serializes appends to the same conversation (row
lock on PostgreSQL, write lock on SQLite), then stamps the message with
max(now, last_message_at) so timestamps never go backwards even if the
clock does.
"""

import logging
from typing import List, Optional
from sqlalchemy import select, update

from career_connect.core.errors import InvalidRequest, NotFound
from career_connect.db.database import get_db_session
from career_connect.models import Conversation, Message, utcnow
from career_connect.schemas.schemas import MAX_MESSAGE_LENGTH, MessageResponse, Participant
from career_connect.services.realtime import (
    MESSAGE_CREATED, RealtimeBroker, conversation_topic, get_broker
)

logger = logging.getLogger(__name__)


class MessageService:

    def __init__(self, broker: RealtimeBroker = None):
        self.broker = broker or get_broker()

    def append(self, conversation_id: int, sender: Participant, content: str) -> MessageResponse:
        """
        Append a message and fan it out to the conversation's live viewers.

        Raises:
            InvalidRequest: content is empty after trimming, or too long
            NotFound: conversation does not exist, or sender is not one of
                its two participants (indistinguishable to the caller)
        """
        content = (content or "").strip()
        if not content:
            raise InvalidRequest("Message content cannot be empty")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise InvalidRequest(f"Message content cannot exceed {MAX_MESSAGE_LENGTH} characters")

        with get_db_session() as db:
            touched = db.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(last_message_at=Conversation.last_message_at)
                .execution_options(synchronize_session=False)
            )
            if touched.rowcount == 0:
                raise NotFound("Conversation not found")

            conversation = db.get(Conversation, conversation_id)
            if not conversation.is_participant(sender.id):
                raise NotFound("Conversation not found")

            now = utcnow()
            last = conversation.last_message_at
            created_at = now if last is None or now > last else last
            conversation.last_message_at = created_at

            message = Message(
                conversation_id=conversation_id,
                sender_id=sender.id,
                content=content,
                created_at=created_at,
            )
            db.add(message)
            db.flush()
            result = MessageResponse.model_validate(message)

        # Published only after the commit above succeeded
        self.broker.publish(
            conversation_topic(conversation_id),
            MESSAGE_CREATED,
            result.model_dump(mode="json"),
        )
        return result

    def list_for(
        self,
        conversation_id: int,
        viewer: Participant,
        after_id: Optional[int] = None,
    ) -> List[MessageResponse]:
        """
        Messages of a conversation in (created_at, id) order.

        after_id limits the result to messages that sort after that message,
        for catching up after a dropped live subscription.
        """
        with get_db_session() as db:
            conversation = db.get(Conversation, conversation_id)
            if conversation is None or not conversation.is_participant(viewer.id):
                raise NotFound("Conversation not found")

            stmt = select(Message).where(Message.conversation_id == conversation_id)
            if after_id is not None:
                anchor = db.get(Message, after_id)
                if anchor is None or anchor.conversation_id != conversation_id:
                    raise NotFound("Message not found")
                stmt = stmt.where(
                    (Message.created_at > anchor.created_at)
                    | ((Message.created_at == anchor.created_at) & (Message.id > anchor.id))
                )
            stmt = stmt.order_by(Message.created_at, Message.id)
            return [MessageResponse.model_validate(m) for m in db.execute(stmt).scalars().all()]


# Singleton instance
_message_service: MessageService = None


def get_message_service() -> MessageService:
    global _message_service
    if _message_service is None:
        _message_service = MessageService()
    return _message_service
