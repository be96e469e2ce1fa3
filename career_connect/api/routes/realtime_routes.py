"""
Realtime Routes (WebSocket)

WS /ws/conversations/{id}?token= - live messages of a conversation; text
                                   frames sent by the client are appended
                                   as messages from the caller
WS /ws/interview-requests?token= - live changes to your interview requests

The subscription is registered before the handshake completes, so nothing
committed after the client sees the socket open is missed. If the socket
cannot be opened (bad token, no access) it is closed with 1008 and the
client should fall back to the list endpoints.
"""

import asyncio
import contextlib
import logging
from typing import Optional
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from career_connect.core.auth import resolve_participant
from career_connect.core.errors import Forbidden, InvalidRequest, TransientIO, Unauthenticated
from career_connect.schemas.schemas import Participant
from career_connect.services.conversation_service import get_conversation_service
from career_connect.services.message_service import get_message_service
from career_connect.services.realtime import (
    Subscription, conversation_topic, get_broker, interview_topic
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["Realtime"])


async def _forward(websocket: WebSocket, subscription: Subscription) -> None:
    """Push every event of the subscription to the socket until either closes."""
    try:
        async for event in subscription:
            await websocket.send_json(event.model_dump(mode="json"))
    except (WebSocketDisconnect, RuntimeError, OSError) as e:
        logger.debug("Stopped forwarding %s: %s", subscription.topic, e)


async def _serve(websocket: WebSocket, me: Participant, topic: str, on_text=None) -> None:
    subscription = get_broker().subscribe(topic)
    forwarder: Optional[asyncio.Task] = None
    try:
        await websocket.accept()
        forwarder = asyncio.create_task(_forward(websocket, subscription))
        logger.info("Participant %s subscribed to %s", me.id, topic)

        while True:
            text = await websocket.receive_text()
            if on_text is not None:
                await on_text(text)
    except WebSocketDisconnect:
        logger.info("Participant %s left %s", me.id, topic)
    finally:
        subscription.close()
        if forwarder is not None:
            forwarder.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await forwarder


@router.websocket("/conversations/{conversation_id}")
async def conversation_socket(
    websocket: WebSocket,
    conversation_id: int,
    token: Optional[str] = Query(None)
):
    try:
        me = resolve_participant(token)
        # Access check: raises NotFound for non-participants
        get_conversation_service().get(me, conversation_id)
    except (Unauthenticated, Forbidden, TransientIO) as e:
        logger.info("Refused conversation socket %s: %s", conversation_id, e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async def append(text: str) -> None:
        try:
            get_message_service().append(conversation_id, me, text)
        except (InvalidRequest, TransientIO) as e:
            await websocket.send_json({"type": "error", "error": e.code, "detail": e.message})

    await _serve(websocket, me, conversation_topic(conversation_id), on_text=append)


@router.websocket("/interview-requests")
async def interview_requests_socket(websocket: WebSocket, token: Optional[str] = Query(None)):
    try:
        me = resolve_participant(token)
    except (Unauthenticated, TransientIO) as e:
        logger.info("Refused interview request socket: %s", e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await _serve(websocket, me, interview_topic(me.id))
