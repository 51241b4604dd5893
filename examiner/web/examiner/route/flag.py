"""Question flag routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from examiner import exam
from examiner.auth import AuthContext, require_participant
from examiner.core import di, TimestampProvider
from examiner.model import FlagSummary, QuestionID, SessionID

from ..view.flag import ClearFlagsResponse, FlagListResponse, FlagRequest, FlagResponse

router = APIRouter(prefix="/api/sessions/{session_id}/flags", tags=["flags"])


@router.get("", operation_id="list_flags")
@di.inject
def list_flags(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> FlagListResponse:
    """List flagged questions."""
    flags = exam.get_flags(auth.user.user_id, session_id, session=session)
    return FlagListResponse(flags=[FlagResponse.of(f) for f in flags])


@router.get("/summary", operation_id="get_flag_summary")
@di.inject
def get_flag_summary(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> FlagSummary:
    return exam.flag_summary(auth.user.user_id, session_id, session=session)


@router.put("/{question_id}", operation_id="set_flag")
@di.inject
def set_flag(
    session_id: SessionID,
    question_id: QuestionID,
    request: FlagRequest,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> FlagResponse:
    flag = exam.set_flag(auth.user.user_id, session_id, question_id, request.flagged, session=session, utcnow=utcnow)
    return FlagResponse.of(flag)


@router.get("/{question_id}", operation_id="get_flag")
@di.inject
def get_flag(
    session_id: SessionID,
    question_id: QuestionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> FlagResponse:
    flagged = exam.get_flag_status(auth.user.user_id, session_id, question_id, session=session)
    return FlagResponse(question_id=question_id, flagged=flagged)


@router.delete("", operation_id="clear_flags")
@di.inject
def clear_flags(
    session_id: SessionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ClearFlagsResponse:
    """Unflag every question in the session."""
    return ClearFlagsResponse(cleared=exam.clear_flags(auth.user.user_id, session_id, session=session))
