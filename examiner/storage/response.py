from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla

from examiner.core import di
from examiner.model import AssessmentID, GradingStatus, ResponseID, SessionID, StudentResponse, UserID

from . import Session
from .dialect import insert
from .table import student_responses


def get(
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentResponse | None:
    stmt = sqla.select(student_responses.__table__).where(student_responses.session_id == session_id)
    row = session.execute(stmt).mappings().one_or_none()
    return StudentResponse(**row) if row else None


def find(
    assessment_id: AssessmentID,
    *,
    grading_status: GradingStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentResponse, ...]:
    stmt = (
        sqla
        .select(student_responses.__table__)
        .where(student_responses.assessment_id == assessment_id)
        .order_by(student_responses.submitted_at)
    )
    if grading_status is not None:
        stmt = stmt.where(student_responses.grading_status == grading_status)
    rows = session.execute(stmt).mappings().all()
    return tuple(StudentResponse(**row) for row in rows)


def upsert(
    *,
    session_id: SessionID,
    assessment_id: AssessmentID,
    participant_id: UserID,
    answers: list[dict[str, t.Any]],
    auto_score: decimal.Decimal,
    grading_status: GradingStatus,
    submitted_at: datetime.datetime,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentResponse:
    """Write the summary row for a session, replacing any earlier one"""
    stmt = insert(student_responses, session=session).values(
        response_id=ResponseID(),
        session_id=session_id,
        assessment_id=assessment_id,
        participant_id=participant_id,
        answers=answers,
        auto_score=auto_score,
        grading_status=grading_status,
        submitted_at=submitted_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["session_id"],
        set_={
            "answers": stmt.excluded.answers,
            "auto_score": stmt.excluded.auto_score,
            "grading_status": stmt.excluded.grading_status,
            "update_time": now,
        },
    )
    session.execute(stmt)
    session.flush()
    result = get(session_id, session=session)
    assert result is not None
    return result
