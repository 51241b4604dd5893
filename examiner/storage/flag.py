from __future__ import annotations

import datetime

import sqlalchemy as sqla

from examiner.core import di
from examiner.model import Flag, QuestionID, QuestionKind, SessionID

from . import Session
from .dialect import insert
from .table import flags, questions


def get(
    *,
    session_id: SessionID,
    question_id: QuestionID,
    session: Session = di.Provide["storage.persistent.session"],
) -> Flag | None:
    stmt = sqla.select(flags.__table__).where(flags.session_id == session_id, flags.question_id == question_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Flag(**row) if row else None


def find(
    session_id: SessionID,
    *,
    flagged: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Flag, ...]:
    stmt = sqla.select(flags.__table__).where(flags.session_id == session_id).order_by(flags.create_time)
    if flagged is not None:
        stmt = stmt.where(flags.flagged.is_(flagged))
    rows = session.execute(stmt).mappings().all()
    return tuple(Flag(**row) for row in rows)


def upsert(
    *,
    session_id: SessionID,
    question_id: QuestionID,
    flagged: bool,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> Flag:
    stmt = insert(flags, session=session).values(session_id=session_id, question_id=question_id, flagged=flagged)
    stmt = stmt.on_conflict_do_update(
        index_elements=["session_id", "question_id"],
        set_={
            "flagged": stmt.excluded.flagged,
            "update_time": now,
        },
    )
    session.execute(stmt)
    session.flush()
    result = get(session_id=session_id, question_id=question_id, session=session)
    assert result is not None
    return result


def clear(
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Unflag every question of the session; returns how many were flagged"""
    stmt = (
        sqla
        .update(flags)
        .where(flags.session_id == session_id, flags.flagged.is_(True))
        .values(flagged=False)
    )
    result = session.execute(stmt)
    session.flush()
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]


def count_by_kind(
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[QuestionKind, int]:
    """Flagged questions of the session, counted per question kind"""
    stmt = (
        sqla
        .select(questions.kind, sqla.func.count())
        .select_from(flags)
        .join(questions, questions.question_id == flags.question_id)
        .where(flags.session_id == session_id, flags.flagged.is_(True))
        .group_by(questions.kind)
    )
    return {kind: n for kind, n in session.execute(stmt).all()}
