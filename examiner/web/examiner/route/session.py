"""Admission and session lifecycle routes for participants."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from examiner import exam
from examiner.auth import AuthContext, require_participant
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings
from examiner.model import AssessmentID, SessionID

from ..view.session import AccessDecisionResponse, AccessRequest, SessionResponse

router = APIRouter(prefix="/api", tags=["sessions"])


@router.post("/assessments/{assessment_id}/access", operation_id="check_access")
@di.inject
def check_access(
    assessment_id: AssessmentID,
    request: AccessRequest,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> AccessDecisionResponse:
    """Report whether the participant would be admitted, without creating a session."""
    credential = exam.Credential(access_code=request.access_code, invitation_token=request.invitation_token)
    decision = exam.validate_access(auth.user.user_id, assessment_id, credential, session=session, utcnow=utcnow)
    return AccessDecisionResponse(
        granted=decision.granted,
        reason=decision.reason,
        assessment_id=assessment_id,
        session_id=decision.session.session_id if decision.session else None,
    )


@router.post("/assessments/{assessment_id}/sessions", operation_id="join_assessment")
@di.inject
def join_assessment(
    assessment_id: AssessmentID,
    request: AccessRequest,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> SessionResponse:
    """Create the participant's session for the assessment, or return the one they already have."""
    credential = exam.Credential(access_code=request.access_code, invitation_token=request.invitation_token)
    es = exam.create_or_resume_session(auth.user.user_id, assessment_id, credential, session=session, utcnow=utcnow)
    return SessionResponse.of(es)


@router.post("/sessions/{session_id}/start", operation_id="start_session")
@di.inject
def start_session(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> SessionResponse:
    es = exam.start_session(auth.user.user_id, session_id, session=session, utcnow=utcnow)
    return SessionResponse.of(es)


@router.get("/sessions/{session_id}", operation_id="get_session_overview")
@di.inject
def get_session_overview(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> exam.SessionOverview:
    return exam.get_session_overview(auth.user.user_id, session_id, session=session, utcnow=utcnow)


@router.get("/sessions/{session_id}/timer", operation_id="get_timer")
@di.inject
def get_timer(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
    policy: ExamSettings = Depends(di.Provide["exam"]),
) -> exam.TimerInfo:
    """Time remaining, with a warning as the deadline approaches."""
    return exam.get_timer_info(auth.user.user_id, session_id, session=session, utcnow=utcnow, policy=policy)


@router.post("/sessions/{session_id}/complete", operation_id="complete_session")
@di.inject
def complete_session(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> SessionResponse:
    es = exam.complete_session(auth.user.user_id, session_id, session=session, utcnow=utcnow)
    return SessionResponse.of(es)


@router.post("/sessions/{session_id}/violations", operation_id="record_violation")
@di.inject
def record_violation(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> SessionResponse:
    """Report a proctoring violation against the participant's own session."""
    es = exam.record_violation(auth.user.user_id, session_id, session=session, utcnow=utcnow)
    return SessionResponse.of(es)
