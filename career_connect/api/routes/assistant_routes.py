"""
Assistant Routes

POST /assistant/chat - Stream an AI assistant reply (Server-Sent Events)

Stream format:
    data: {"content": "<delta>"}
    ...
    data: [DONE]
"""

import json
from typing import Iterator
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from career_connect.core.auth import get_current_participant
from career_connect.schemas.schemas import AssistantChatRequest, Participant
from career_connect.services.assistant_client import get_assistant_client

router = APIRouter(prefix="/assistant", tags=["AI Assistant"])

DONE_SENTINEL = "[DONE]"


def _sse(deltas: Iterator[str]) -> Iterator[str]:
    for delta in deltas:
        yield f"data: {json.dumps({'content': delta})}\n\n"
    yield f"data: {DONE_SENTINEL}\n\n"


@router.post("/chat")
async def chat(request: AssistantChatRequest, me: Participant = Depends(get_current_participant)):
    """
    Send the chronological transcript, receive the reply as a stream.

    Rate limiting (429) and exhausted quota (402) are reported as distinct
    status codes before any data is streamed.
    """
    # The upstream request blocks; keep it off the event loop
    deltas = await run_in_threadpool(get_assistant_client().open_stream, request.messages)
    return StreamingResponse(_sse(deltas), media_type="text/event-stream")
