"""
Interview Request Workflow

State machine, per request:

    pending --accept (by student)--> accepted   (terminal)
    pending --reject (by student)--> rejected   (terminal)

Only a job giver creates requests; only the referenced student moves them.
The status change is a conditional UPDATE ... WHERE status = 'pending', so
two concurrent transitions cannot both succeed. At most one pending request
exists per (job giver, student) pair (partial unique index).

Profile lookups happen before the write; nothing touches a store between
commit and publish, so a committed change is always reported as success.
"""

import logging
import threading
from typing import List
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from career_connect.core.errors import (
    DuplicatePendingRequest, Forbidden, IllegalTransition, InvalidRequest, NotFound
)
from career_connect.db.database import get_db_session
from career_connect.models import InterviewRequest, User, utcnow
from career_connect.schemas.schemas import EnrichedRequest, Participant, RequestStatus, UserRole
from career_connect.services.profile_service import RoleProfileService, get_profile_service
from career_connect.services.read_models import company_names, participant_names, request_views
from career_connect.services.realtime import (
    REQUEST_CREATED, REQUEST_UPDATED, RealtimeBroker, get_broker, interview_topic
)

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {RequestStatus.accepted.value, RequestStatus.rejected.value}


class InterviewRequestService:

    def __init__(self, broker: RealtimeBroker = None, profiles: RoleProfileService = None):
        self.broker = broker or get_broker()
        self._profiles = profiles
        # Held across commit and publish so events leave in commit order
        self._commit_lock = threading.Lock()

    @property
    def profiles(self) -> RoleProfileService:
        # Resolved per use so the current MongoDB connection is picked up
        return self._profiles if self._profiles is not None else get_profile_service()

    def _publish(self, request: InterviewRequest, names, companies, event_type: str) -> None:
        # Each party gets the view (and offered actions) it would list
        for viewer_id in (request.job_giver_id, request.student_id):
            view = request_views([request], viewer_id, names, companies)[0]
            self.broker.publish(interview_topic(viewer_id), event_type, view.model_dump(mode="json"))

    def create(self, job_giver: Participant, student_id: int, message: str) -> EnrichedRequest:
        """
        Send an interview request from a job giver to a student.

        Blocking (SQL and profile store): run it in a worker thread.

        Raises:
            Forbidden: caller is not a job giver
            InvalidRequest: empty message
            NotFound: student does not exist
            DuplicatePendingRequest: a pending request to this student exists
        """
        if job_giver.role != UserRole.job_giver:
            raise Forbidden("Only job givers can send interview requests")

        message = (message or "").strip()
        if not message:
            raise InvalidRequest("Request message cannot be empty")

        companies = company_names(self.profiles, [job_giver.id])

        try:
            with self._commit_lock:
                with get_db_session() as db:
                    student = db.get(User, student_id)
                    if student is None or not student.is_active or student.role != UserRole.student.value:
                        raise NotFound("Student not found")

                    now = utcnow()
                    request = InterviewRequest(
                        job_giver_id=job_giver.id,
                        student_id=student_id,
                        message=message,
                        status=RequestStatus.pending.value,
                        created_at=now,
                        updated_at=now,
                    )
                    db.add(request)
                    db.flush()
                    names = participant_names(db, [request])

                self._publish(request, names, companies, REQUEST_CREATED)
        except IntegrityError:
            raise DuplicatePendingRequest("A pending interview request to this student already exists")

        logger.info("Interview request %s created: %s -> %s", request.id, job_giver.id, student_id)
        return request_views([request], job_giver.id, names, companies)[0]

    def transition(self, request_id: int, new_status: RequestStatus, caller: Participant) -> EnrichedRequest:
        """
        Accept or reject a pending request.

        Blocking (SQL and profile store): run it in a worker thread.

        Raises:
            NotFound: request missing, or caller is neither of its parties
            Forbidden: caller is not the request's student
            IllegalTransition: target is not terminal, or the request is no
                longer pending
        """
        new_status = RequestStatus(new_status)

        with get_db_session() as db:
            request = db.get(InterviewRequest, request_id)
            if request is None or caller.id not in (request.job_giver_id, request.student_id):
                raise NotFound("Interview request not found")
            if caller.id != request.student_id:
                raise Forbidden("Only the invited student can respond to this request")
            if new_status.value not in TERMINAL_STATUSES:
                raise IllegalTransition(
                    request.status, f"Cannot move a request to {new_status.value}"
                )
            if request.status != RequestStatus.pending.value:
                raise IllegalTransition(request.status)
            job_giver_id = request.job_giver_id

        companies = company_names(self.profiles, [job_giver_id])

        with self._commit_lock:
            with get_db_session() as db:
                result = db.execute(
                    update(InterviewRequest)
                    .where(
                        InterviewRequest.id == request_id,
                        InterviewRequest.status == RequestStatus.pending.value,
                    )
                    .values(status=new_status.value, updated_at=utcnow())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    # A concurrent transition won; report what it set
                    current = db.execute(
                        select(InterviewRequest.status).where(InterviewRequest.id == request_id)
                    ).scalar_one()
                    raise IllegalTransition(current)

                request = db.get(InterviewRequest, request_id)
                names = participant_names(db, [request])

            self._publish(request, names, companies, REQUEST_UPDATED)

        logger.info("Interview request %s %s by %s", request_id, new_status.value, caller.id)
        return request_views([request], caller.id, names, companies)[0]

    def list_for(self, participant: Participant) -> List[EnrichedRequest]:
        """
        Requests visible to participant, newest first.

        student -> requests addressed to them; job giver -> requests they sent;
        mentors take no part in the workflow.
        """
        if participant.role == UserRole.student:
            condition = InterviewRequest.student_id == participant.id
        elif participant.role == UserRole.job_giver:
            condition = InterviewRequest.job_giver_id == participant.id
        else:
            return []

        with get_db_session() as db:
            requests = db.execute(
                select(InterviewRequest)
                .where(condition)
                .order_by(InterviewRequest.created_at.desc(), InterviewRequest.id.desc())
            ).scalars().all()
            names = participant_names(db, requests)

        companies = company_names(self.profiles, (r.job_giver_id for r in requests))
        return request_views(requests, participant.id, names, companies)


# Singleton instance
_interview_service: InterviewRequestService = None


def get_interview_service() -> InterviewRequestService:
    global _interview_service
    if _interview_service is None:
        _interview_service = InterviewRequestService()
    return _interview_service
