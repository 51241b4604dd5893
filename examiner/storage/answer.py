"""Storage for answer records.

Answer records snapshot the question at materialization; the response write is
conditional on the owning session still being in progress, so a write racing
completion never lands after the score was frozen.
"""

from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla

from examiner.core import di
from examiner.model import AnswerID, AnswerRecord, Question, QuestionID, SessionID, SessionStatus, UserID

from . import Session
from .dialect import insert
from .table import answers, exam_sessions


def get(
    *,
    session_id: SessionID,
    question_id: QuestionID,
    session: Session = di.Provide["storage.persistent.session"],
) -> AnswerRecord | None:
    stmt = sqla.select(answers.__table__).where(answers.session_id == session_id, answers.question_id == question_id)
    row = session.execute(stmt).mappings().one_or_none()
    return AnswerRecord(**row) if row else None


def find(
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[AnswerRecord, ...]:
    """The session's materialized answer records, in question order."""
    stmt = sqla.select(answers.__table__).where(answers.session_id == session_id).order_by(answers.position)
    rows = session.execute(stmt).mappings().all()
    return tuple(AnswerRecord(**row) for row in rows)


def materialize(
    session_id: SessionID,
    question: Question,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> AnswerRecord:
    """Copy the question into an answer record for the session, unless one already exists."""
    stmt = (
        insert(answers, session=session)
        .values(
            answer_id=AnswerID(),
            session_id=session_id,
            question_id=question.question_id,
            kind=question.kind,
            position=question.position,
            content=question.content,
            answer_key=question.answer_key,
            marks=question.marks,
            graded=False,
        )
        .on_conflict_do_nothing(index_elements=["session_id", "question_id"])
    )
    session.execute(stmt)
    session.flush()
    result = get(session_id=session_id, question_id=question.question_id, session=session)
    assert result is not None
    return result


def write_response(
    answer_id: AnswerID,
    *,
    response: dict[str, t.Any],
    marks_obtained: decimal.Decimal | None,
    graded: bool,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Store a response and its grading outcome in one statement.

    Returns:
        False if the owning session is no longer in progress; nothing is written
    """
    active = sqla.exists().where(
        exam_sessions.session_id == answers.session_id,
        exam_sessions.status == SessionStatus.InProgress,
    )
    stmt = (
        sqla
        .update(answers)
        .where(answers.answer_id == answer_id, active)
        .values(
            response=response,
            answer_time=now,
            marks_obtained=marks_obtained,
            graded=graded,
            grader_id=None,
            grader_comments=None,
        )
    )
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def record_review(
    answer_id: AnswerID,
    *,
    marks_obtained: decimal.Decimal,
    grader_id: UserID,
    grader_comments: str | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """
    Raises:
        KeyError: If answer_id does not correspond to an answer record
    """
    stmt = (
        sqla
        .update(answers)
        .where(answers.answer_id == answer_id)
        .values(marks_obtained=marks_obtained, graded=True, grader_id=grader_id, grader_comments=grader_comments)
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Answer {answer_id} not found")
    session.flush()
