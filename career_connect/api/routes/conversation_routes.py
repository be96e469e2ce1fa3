"""
Conversation Routes

POST /conversations - Find or create the conversation with a participant
GET /conversations - List own conversations (most recent activity first)
GET /conversations/candidates - Participants you can start a conversation with
GET /conversations/{id} - Conversation summary (other participant, last message)
GET /conversations/{id}/messages - Message history in order (?after_id= to catch up)
POST /conversations/{id}/messages - Send a message
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from career_connect.core.auth import get_current_participant
from career_connect.schemas.schemas import (
    ConversationCreate, ConversationRef, ConversationSummary,
    MessageCreate, MessageResponse, Participant
)
from career_connect.services.conversation_service import get_conversation_service
from career_connect.services.message_service import get_message_service

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.post("", response_model=ConversationRef)
async def start_conversation(data: ConversationCreate, me: Participant = Depends(get_current_participant)):
    """
    Open the single conversation between you and another participant.

    Safe to call repeatedly (or concurrently from both sides): the same
    conversation id is returned every time.
    """
    conversation_id, created = get_conversation_service().find_or_create(me, data.participant_id)
    return ConversationRef(conversation_id=conversation_id, created=created)


@router.get("", response_model=List[ConversationSummary])
async def list_conversations(me: Participant = Depends(get_current_participant)):
    """Own conversations with the other participant and last message."""
    return get_conversation_service().list_for(me)


@router.get("/candidates", response_model=List[Participant])
async def list_candidates(me: Participant = Depends(get_current_participant)):
    """
    Participants you may start a new conversation with.

    Students see job givers and mentors; job givers and mentors see students.
    """
    return get_conversation_service().list_candidates(me)


@router.get("/{conversation_id}", response_model=ConversationSummary)
async def get_conversation(conversation_id: int, me: Participant = Depends(get_current_participant)):
    return get_conversation_service().get(me, conversation_id)


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: int,
    after_id: Optional[int] = Query(None, description="Only messages after this one"),
    me: Participant = Depends(get_current_participant)
):
    """Message history, oldest first. Live updates come over the WebSocket."""
    return get_message_service().list_for(conversation_id, me, after_id=after_id)


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    conversation_id: int,
    data: MessageCreate,
    me: Participant = Depends(get_current_participant)
):
    """Append a message; live viewers of the conversation receive it immediately."""
    return get_message_service().append(conversation_id, me, data.content)
