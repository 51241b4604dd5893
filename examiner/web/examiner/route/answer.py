"""Question and answer routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from examiner import exam
from examiner.auth import AuthContext, require_instructor, require_participant
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings
from examiner.model import QuestionID, SessionID

from ..view.answer import ReviewedAnswerResponse, ReviewRequest, SubmitAnswerRequest, SubmittedAnswerResponse

router = APIRouter(prefix="/api/sessions/{session_id}", tags=["answers"])


@router.get("/questions/{question_id}", operation_id="open_question")
@di.inject
def open_question(
    session_id: SessionID,
    question_id: QuestionID,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> exam.AnswerView:
    return exam.open_question(auth.user.user_id, session_id, question_id, session=session, utcnow=utcnow)


@router.put("/answers/{question_id}", operation_id="submit_answer")
@di.inject
def submit_answer(
    session_id: SessionID,
    question_id: QuestionID,
    request: SubmitAnswerRequest,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
    policy: ExamSettings = Depends(di.Provide["exam"]),
) -> SubmittedAnswerResponse:
    """Record a response; resubmitting replaces the previous one."""
    record = exam.submit_answer(
        auth.user.user_id,
        session_id,
        question_id,
        request.response,
        session=session,
        utcnow=utcnow,
        policy=policy,
    )
    assert record.response is not None and record.answer_time is not None
    return SubmittedAnswerResponse(
        session_id=record.session_id,
        question_id=record.question_id,
        response=record.response,
        answer_time=record.answer_time,
    )


@router.post("/answers/{question_id}/review", operation_id="review_answer")
@di.inject
def review_answer(
    session_id: SessionID,
    question_id: QuestionID,
    request: ReviewRequest,
    auth: AuthContext = Depends(require_instructor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> ReviewedAnswerResponse:
    """Award marks to an answer by hand."""
    record = exam.review_answer(
        auth.user.user_id,
        session_id,
        question_id,
        request.marks,
        request.comments,
        session=session,
        utcnow=utcnow,
    )
    return ReviewedAnswerResponse.of(record)
