"""Instructor routes for watching and intervening in running sessions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from examiner import exam
from examiner.auth import AuthContext, require_instructor
from examiner.core import di, TimestampProvider
from examiner.exam.errors import storage_errors
from examiner.exam.timer import ExpiringSession
from examiner.model import AssessmentID, SessionID, UserID
from examiner.storage import assessment as assessment_storage

from ..view.session import SessionResponse, SweepResponse, TerminateRequest

router = APIRouter(prefix="/api", tags=["monitor"])


@storage_errors
def _check_owner(assessment_id: AssessmentID, owner_id: UserID, *, session: Session) -> None:
    with session.begin():
        assessment = assessment_storage.get(assessment_id, session=session)
    if assessment is None:
        raise exam.NotFound("NOT_FOUND", "Assessment not found")
    if assessment.owner_id != owner_id:
        raise exam.AccessDenied("ACCESS_DENIED", "Only the assessment owner may monitor its sessions")


@router.post("/assessments/{assessment_id}/sweep", operation_id="sweep_expired")
@di.inject
def sweep_expired(
    assessment_id: AssessmentID,
    auth: AuthContext = Depends(require_instructor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> SweepResponse:
    """Complete every session of the assessment that has run out of time."""
    _check_owner(assessment_id, auth.user.user_id, session=session)
    completed = exam.sweep_expired(assessment_id, session=session, utcnow=utcnow)
    return SweepResponse(assessment_id=assessment_id, completed=completed)


@router.get("/assessments/{assessment_id}/expiring", operation_id="find_expiring")
@di.inject
def find_expiring(
    assessment_id: AssessmentID,
    within_minutes: int = Query(5, gt=0),
    auth: AuthContext = Depends(require_instructor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> list[ExpiringSession]:
    """Sessions about to run out of time, soonest first."""
    _check_owner(assessment_id, auth.user.user_id, session=session)
    return exam.find_expiring(assessment_id, within_minutes, session=session, utcnow=utcnow)


@router.post("/sessions/{session_id}/terminate", operation_id="terminate_session")
@di.inject
def terminate_session(
    session_id: SessionID,
    request: TerminateRequest,
    auth: AuthContext = Depends(require_instructor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> SessionResponse:
    es = exam.terminate_session(auth.user.user_id, session_id, reason=request.reason, session=session, utcnow=utcnow)
    return SessionResponse.of(es)
