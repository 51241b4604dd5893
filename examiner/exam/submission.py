"""Answer submission, grading and review."""

from __future__ import annotations

import datetime
import decimal
import logging
import typing as t

import examiner.storage.answer
import examiner.storage.flag
import examiner.storage.question
import examiner.storage.session
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings
from examiner.model import AnswerRecord, AssessmentID, BaseModel, QuestionID, QuestionKind, SessionID, SessionStatus, \
    UserID
from examiner.storage import Session

from . import clock, responses
from .errors import AccessDenied, NotFound, SessionStateError, storage_errors, ValidationFailure
from .grading import grader_for
from .lifecycle import enforce_time_limit, load, require_active

logger = logging.getLogger(__name__)


class AnswerView(BaseModel):
    """A question as the participant sees it: no answer key, no grading"""

    question_id: QuestionID
    kind: QuestionKind
    position: int
    content: dict[str, t.Any]
    marks: decimal.Decimal
    response: dict[str, t.Any] | None = None
    answer_time: datetime.datetime | None = None
    flagged: bool = False

    @classmethod
    def of(cls, record: AnswerRecord, *, flagged: bool) -> AnswerView:
        return cls(
            question_id=record.question_id,
            kind=record.kind,
            position=record.position,
            content=record.content,
            marks=record.marks,
            response=record.response,
            answer_time=record.answer_time,
            flagged=flagged,
        )


class SessionOverview(BaseModel):
    session_id: SessionID
    status: SessionStatus
    total_questions: int
    answered_questions: int
    flagged_questions: int
    remaining_seconds: int
    answered: list[QuestionID]
    flagged: list[QuestionID]


def _materialize(
    session_id: SessionID, question_id: QuestionID, *, assessment_id: AssessmentID, session: Session
) -> AnswerRecord:
    question = examiner.storage.question.get(question_id, assessment_id=assessment_id, session=session)
    if question is None:
        raise NotFound("QUESTION_NOT_FOUND", "Question does not belong to this assessment")
    return examiner.storage.answer.materialize(session_id, question, session=session)


@storage_errors
def open_question(
    participant_id: UserID,
    session_id: SessionID,
    question_id: QuestionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> AnswerView:
    """The participant's view of a question, materializing its answer record on first access"""
    es, _ = require_active(session_id, participant_id=participant_id, session=session, utcnow=utcnow)
    with session.begin():
        record = _materialize(session_id, question_id, assessment_id=es.assessment_id, session=session)
        flag = examiner.storage.flag.get(session_id=session_id, question_id=question_id, session=session)
    return AnswerView.of(record, flagged=flag is not None and flag.flagged)


@storage_errors
def submit_answer(
    participant_id: UserID,
    session_id: SessionID,
    question_id: QuestionID,
    response: dict[str, t.Any],
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    policy: ExamSettings = di.Provide["exam"],
) -> AnswerRecord:
    """Record the participant's response to a question.

    Objective kinds are graded in the same write, every time the response
    changes; the others are left ungraded for review. The session's score is
    never touched here.

    Raises:
        NotFound: SESSION_NOT_FOUND, QUESTION_NOT_FOUND
        TimeExpired: the session ran out of time and has been completed
        SessionStateError: SESSION_NOT_ACTIVE
        InvalidResponse: the response does not suit the question; nothing is written
    """
    es, _ = require_active(session_id, participant_id=participant_id, session=session, utcnow=utcnow)

    with session.begin():
        record = _materialize(session_id, question_id, assessment_id=es.assessment_id, session=session)
        grader = grader_for(record.kind)
        normalized = grader.validate(record.content, response, policy)
        marks_obtained = grader.grade(normalized, record.answer_key, record.marks)

        written = examiner.storage.answer.write_response(
            record.answer_id,
            response=normalized,
            marks_obtained=marks_obtained,
            graded=marks_obtained is not None,
            now=utcnow(),
            session=session,
        )
        if not written:
            raise SessionStateError("SESSION_NOT_ACTIVE", "Session is no longer in progress")

        updated = examiner.storage.answer.get(session_id=session_id, question_id=question_id, session=session)
        assert updated is not None

    logger.debug(
        "recorded answer",
        extra={"session_id": session_id, "question_id": question_id, "graded": updated.graded},
    )
    return updated


@storage_errors
def review_answer(
    reviewer_id: UserID,
    session_id: SessionID,
    question_id: QuestionID,
    marks: decimal.Decimal,
    comments: str | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> AnswerRecord:
    """Grade an answer by hand. On a completed session the score is re-totalled.

    Raises:
        AccessDenied: ACCESS_DENIED unless `reviewer_id` owns the assessment
        NotFound: SESSION_NOT_FOUND, or QUESTION_NOT_FOUND if nothing was answered
        ValidationFailure: INVALID_MARKS
    """
    with session.begin():
        es, assessment = load(session_id, participant_id=None, session=session)
        if assessment.owner_id != reviewer_id:
            raise AccessDenied("ACCESS_DENIED", "Only the assessment owner may review answers")

        record = examiner.storage.answer.get(session_id=session_id, question_id=question_id, session=session)
        if record is None:
            raise NotFound("QUESTION_NOT_FOUND", "No answer has been recorded for this question")
        if not decimal.Decimal(0) <= marks <= record.marks:
            raise ValidationFailure("INVALID_MARKS", f"marks must be between 0 and {record.marks}")

        examiner.storage.answer.record_review(
            record.answer_id,
            marks_obtained=marks,
            grader_id=reviewer_id,
            grader_comments=comments,
            session=session,
        )
        retotalled = False
        if es.status is SessionStatus.Completed:
            retotalled = examiner.storage.session.retotal(session_id, session=session)

        updated = examiner.storage.answer.get(session_id=session_id, question_id=question_id, session=session)
        assert updated is not None

    logger.info(
        "reviewed answer",
        extra={"session_id": session_id, "question_id": question_id, "reviewer_id": reviewer_id, "marks": marks},
    )
    if retotalled:
        responses.write(session_id, session=session, utcnow=utcnow)
    return updated


@storage_errors
def get_session_overview(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> SessionOverview:
    """Progress through the session, read under the expiry guard"""
    guarded = enforce_time_limit(session_id, participant_id=participant_id, session=session, utcnow=utcnow)
    es, assessment = guarded.session, guarded.assessment

    with session.begin():
        total = examiner.storage.question.count(assessment.assessment_id, session=session)
        answered = [r.question_id for r in examiner.storage.answer.find(session_id, session=session) if r.answered]
        flagged = [f.question_id for f in examiner.storage.flag.find(session_id, flagged=True, session=session)]

    if es.status.is_terminal:
        remaining = 0
    else:
        remaining = clock.remaining_seconds(es.start_time, assessment.duration, guarded.now)

    return SessionOverview(
        session_id=session_id,
        status=es.status,
        total_questions=total,
        answered_questions=len(answered),
        flagged_questions=len(flagged),
        remaining_seconds=remaining,
        answered=answered,
        flagged=flagged,
    )
