"""Storage for exam sessions.

Every status change here is a conditional UPDATE keyed on the status the
caller expects the row to be in; the boolean returned says whether this call
won the transition. Callers re-read the row either way.
"""

from __future__ import annotations

import datetime
import decimal

import sqlalchemy as sqla

from examiner.core import di
from examiner.model import AssessmentID, ExamSession, SessionID, SessionStatus, UserID

from . import Session
from .dialect import insert
from .table import answers, exam_sessions


def get(
    session_id: SessionID,
    *,
    participant_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> ExamSession | None:
    """Get an exam session by ID, optionally requiring it to belong to a participant."""
    stmt = sqla.select(exam_sessions.__table__).where(exam_sessions.session_id == session_id)
    if participant_id is not None:
        stmt = stmt.where(exam_sessions.participant_id == participant_id)
    row = session.execute(stmt).mappings().one_or_none()
    return ExamSession(**row) if row else None


def get_for(
    *,
    participant_id: UserID,
    assessment_id: AssessmentID,
    session: Session = di.Provide["storage.persistent.session"],
) -> ExamSession | None:
    """The participant's session for an assessment, if any."""
    stmt = sqla.select(exam_sessions.__table__).where(
        exam_sessions.participant_id == participant_id,
        exam_sessions.assessment_id == assessment_id,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return ExamSession(**row) if row else None


def find(
    *,
    assessment_id: AssessmentID | None = None,
    participant_id: UserID | None = None,
    status: SessionStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ExamSession, ...]:
    stmt = sqla.select(exam_sessions.__table__).order_by(exam_sessions.create_time)
    if assessment_id is not None:
        stmt = stmt.where(exam_sessions.assessment_id == assessment_id)
    if participant_id is not None:
        stmt = stmt.where(exam_sessions.participant_id == participant_id)
    if status is not None:
        stmt = stmt.where(exam_sessions.status == status)
    rows = session.execute(stmt).mappings().all()
    return tuple(ExamSession(**row) for row in rows)


def find_or_create(
    *,
    participant_id: UserID,
    assessment_id: AssessmentID,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ExamSession, bool]:
    """Insert a not_started session unless one exists for the pair, then select it.

    Returns:
        The session, and whether this call created it
    """
    stmt = (
        insert(exam_sessions, session=session)
        .values(
            session_id=SessionID(),
            participant_id=participant_id,
            assessment_id=assessment_id,
            status=SessionStatus.NotStarted,
            violations_count=0,
        )
        .on_conflict_do_nothing(index_elements=["participant_id", "assessment_id"])
    )
    result = session.execute(stmt)
    session.flush()
    created = bool(result.rowcount)  # pyright: ignore[reportAttributeAccessIssue]

    es = get_for(participant_id=participant_id, assessment_id=assessment_id, session=session)
    assert es is not None
    return es, created


def mark_started(
    session_id: SessionID,
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """not_started -> in_progress, stamping `start_time` exactly once"""
    stmt = (
        sqla
        .update(exam_sessions)
        .where(exam_sessions.session_id == session_id, exam_sessions.status == SessionStatus.NotStarted)
        .values(status=SessionStatus.InProgress, start_time=now)
    )
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def graded_total() -> sqla.ScalarSelect[decimal.Decimal]:
    """Correlated sum of graded marks for the session row being updated"""
    return (
        sqla
        .select(sqla.func.coalesce(sqla.func.sum(answers.marks_obtained), 0))
        .where(answers.session_id == exam_sessions.session_id, answers.graded.is_(True))
        .scalar_subquery()
    )


def mark_completed(
    session_id: SessionID,
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """in_progress -> completed, freezing `total_score` in the same statement"""
    stmt = (
        sqla
        .update(exam_sessions)
        .where(exam_sessions.session_id == session_id, exam_sessions.status == SessionStatus.InProgress)
        .values(status=SessionStatus.Completed, end_time=now, total_score=graded_total())
    )
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def mark_terminated(
    session_id: SessionID,
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """in_progress -> terminated; the score is frozen as it stands"""
    stmt = (
        sqla
        .update(exam_sessions)
        .where(exam_sessions.session_id == session_id, exam_sessions.status == SessionStatus.InProgress)
        .values(status=SessionStatus.Terminated, end_time=now, total_score=graded_total())
    )
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def retotal(
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Recompute `total_score` of a completed session after a late review"""
    stmt = (
        sqla
        .update(exam_sessions)
        .where(exam_sessions.session_id == session_id, exam_sessions.status == SessionStatus.Completed)
        .values(total_score=graded_total())
    )
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def increment_violations(
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int | None:
    """Count one violation against an in_progress session; returns the new count, or None if not in progress"""
    stmt = (
        sqla
        .update(exam_sessions)
        .where(exam_sessions.session_id == session_id, exam_sessions.status == SessionStatus.InProgress)
        .values(violations_count=exam_sessions.violations_count + 1)
        .returning(exam_sessions.violations_count)
    )
    count = session.execute(stmt).scalar_one_or_none()
    session.flush()
    return count


def find_in_progress_started_before(
    assessment_id: AssessmentID,
    *,
    cutoff: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ExamSession, ...]:
    """in_progress sessions of an assessment whose clock started at or before `cutoff`"""
    stmt = (
        sqla
        .select(exam_sessions.__table__)
        .where(
            exam_sessions.assessment_id == assessment_id,
            exam_sessions.status == SessionStatus.InProgress,
            exam_sessions.start_time <= cutoff,
        )
        .order_by(exam_sessions.start_time)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(ExamSession(**row) for row in rows)
