from __future__ import annotations

import datetime
import decimal
import typing as t

import sqlalchemy as sqla

from examiner.core import di
from examiner.lib import NotSet
from examiner.model import AccessMode, Assessment, AssessmentID, UserID

from . import Session
from .table import assessments, questions


def get(
    assessment_id: AssessmentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assessment | None:
    stmt = sqla.select(assessments.__table__).where(assessments.assessment_id == assessment_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Assessment(**row) if row else None


def find(
    *,
    owner_id: UserID | None = None,
    is_published: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Assessment, ...]:
    stmt = sqla.select(assessments.__table__).order_by(assessments.start_time)
    if owner_id is not None:
        stmt = stmt.where(assessments.owner_id == owner_id)
    if is_published is not None:
        stmt = stmt.where(assessments.is_published == is_published)
    rows = session.execute(stmt).mappings().all()
    return tuple(Assessment(**row) for row in rows)


def create(
    *,
    owner_id: UserID,
    title: str,
    start_time: datetime.datetime,
    end_time: datetime.datetime,
    duration_minutes: int,
    description: str | None = None,
    access_mode: AccessMode = AccessMode.Open,
    access_code: str | None = None,
    max_violations: int | None = None,
    require_proctor_signal: bool = False,
    is_published: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assessment:
    """Create a new assessment.

    The scheduling window and duration bounds are enforced by
    `examiner.exam.authoring`; the table only guards `start_time < end_time`.
    """
    assessment_id = AssessmentID()
    stmt = sqla.insert(assessments).values(
        assessment_id=assessment_id,
        owner_id=owner_id,
        title=title,
        description=description,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration_minutes,
        access_mode=access_mode,
        access_code=access_code,
        max_violations=max_violations,
        require_proctor_signal=require_proctor_signal,
        is_published=is_published,
    )
    session.execute(stmt)
    session.flush()
    result = get(assessment_id, session=session)
    assert result is not None
    return result


def update(
    assessment_id: AssessmentID,
    *,
    is_published: bool | NotSet = NotSet(),
    access_code: str | None | NotSet = NotSet(),
    max_violations: int | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update an assessment.

    Raises:
        KeyError: If assessment_id does not correspond to an assessment
    """
    values: dict[str, t.Any] = {}
    if not isinstance(is_published, NotSet):
        values["is_published"] = is_published
    if not isinstance(access_code, NotSet):
        values["access_code"] = access_code
    if not isinstance(max_violations, NotSet):
        values["max_violations"] = max_violations

    if values:
        stmt = sqla.update(assessments).where(assessments.assessment_id == assessment_id).values(**values)
    else:
        # No-op update to verify assessment exists
        stmt = (
            sqla
            .update(assessments)
            .where(assessments.assessment_id == assessment_id)
            .values(assessment_id=assessment_id)
        )

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Assessment {assessment_id} not found")
    session.flush()


def refresh_total_marks(
    assessment_id: AssessmentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> decimal.Decimal:
    """Recompute `total_marks` from the question bank and return it"""
    total = (
        sqla
        .select(sqla.func.coalesce(sqla.func.sum(questions.marks), 0))
        .where(questions.assessment_id == assessment_id)
        .scalar_subquery()
    )
    stmt = (
        sqla
        .update(assessments)
        .where(assessments.assessment_id == assessment_id)
        .values(total_marks=total)
        .returning(assessments.total_marks)
    )
    value = session.execute(stmt).scalar_one_or_none()
    if value is None:
        raise KeyError(f"Assessment {assessment_id} not found")
    session.flush()
    return decimal.Decimal(value)
