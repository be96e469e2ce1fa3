"""
Interview Request Routes

POST /interview-requests - Send a request to a student (job giver only)
GET /interview-requests - Requests you sent (job giver) or received (student)
PUT /interview-requests/{id}/status - Accept or reject (the invited student only)

Service calls run in the worker threadpool: they also read the profile store.
"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from typing import List

from career_connect.core.auth import get_current_participant
from career_connect.schemas.schemas import (
    EnrichedRequest, InterviewRequestCreate, InterviewStatusUpdate, Participant
)
from career_connect.services.interview_service import get_interview_service

router = APIRouter(prefix="/interview-requests", tags=["Interview Requests"])


@router.post("", response_model=EnrichedRequest, status_code=201)
async def create_request(data: InterviewRequestCreate, me: Participant = Depends(get_current_participant)):
    """
    Send an interview request. Only one request per student can be pending
    at a time; once it is answered a new one may be sent.
    """
    return await run_in_threadpool(get_interview_service().create, me, data.student_id, data.message)


@router.get("", response_model=List[EnrichedRequest])
async def list_requests(me: Participant = Depends(get_current_participant)):
    """Newest first, with names, company and the actions offered to you."""
    return await run_in_threadpool(get_interview_service().list_for, me)


@router.put("/{request_id}/status", response_model=EnrichedRequest)
async def update_request_status(
    request_id: int,
    update: InterviewStatusUpdate,
    me: Participant = Depends(get_current_participant)
):
    """Accept or reject a pending request."""
    return await run_in_threadpool(get_interview_service().transition, request_id, update.status, me)
