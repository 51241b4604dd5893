from __future__ import annotations

import decimal
import typing as t

import sqlalchemy as sqla

from examiner.core import di
from examiner.model import AssessmentID, Question, QuestionID, QuestionKind

from . import Session
from .table import questions


def get(
    question_id: QuestionID,
    *,
    assessment_id: AssessmentID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Question | None:
    """Get a question by ID, optionally requiring it to belong to an assessment."""
    stmt = sqla.select(questions.__table__).where(questions.question_id == question_id)
    if assessment_id is not None:
        stmt = stmt.where(questions.assessment_id == assessment_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Question(**row) if row else None


def find(
    assessment_id: AssessmentID,
    *,
    kind: QuestionKind | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Question, ...]:
    """The assessment's question bank, in position order."""
    stmt = (
        sqla
        .select(questions.__table__)
        .where(questions.assessment_id == assessment_id)
        .order_by(questions.position)
    )
    if kind is not None:
        stmt = stmt.where(questions.kind == kind)
    rows = session.execute(stmt).mappings().all()
    return tuple(Question(**row) for row in rows)


def count(
    assessment_id: AssessmentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    stmt = sqla.select(sqla.func.count()).select_from(questions).where(questions.assessment_id == assessment_id)
    return session.execute(stmt).scalar_one()


def create(
    *,
    assessment_id: AssessmentID,
    kind: QuestionKind,
    position: int,
    content: dict[str, t.Any],
    marks: decimal.Decimal,
    answer_key: dict[str, t.Any] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Question:
    question_id = QuestionID()
    stmt = sqla.insert(questions).values(
        question_id=question_id,
        assessment_id=assessment_id,
        kind=kind,
        position=position,
        content=content,
        answer_key=answer_key,
        marks=marks,
    )
    session.execute(stmt)
    session.flush()
    result = get(question_id, session=session)
    assert result is not None
    return result
