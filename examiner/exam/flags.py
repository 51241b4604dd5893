"""The flag ledger: per-question bookmarks a participant keeps during a session.

Flags need only session ownership; they never touch answers, scores or the
session's status.
"""

from __future__ import annotations

import examiner.storage.flag
import examiner.storage.question
from examiner.core import di, TimestampProvider
from examiner.model import ExamSession, Flag, FlagSummary, QuestionID, SessionID, UserID
from examiner.storage import Session

from .errors import NotFound, storage_errors
from .lifecycle import load


def _owned(participant_id: UserID, session_id: SessionID, *, session: Session) -> ExamSession:
    es, _ = load(session_id, participant_id=participant_id, session=session)
    return es


def _check_question(es: ExamSession, question_id: QuestionID, *, session: Session) -> None:
    if examiner.storage.question.get(question_id, assessment_id=es.assessment_id, session=session) is None:
        raise NotFound("QUESTION_NOT_FOUND", "Question does not belong to this assessment")


@storage_errors
def set_flag(
    participant_id: UserID,
    session_id: SessionID,
    question_id: QuestionID,
    flagged: bool,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Flag:
    with session.begin():
        es = _owned(participant_id, session_id, session=session)
        _check_question(es, question_id, session=session)
        return examiner.storage.flag.upsert(
            session_id=session_id, question_id=question_id, flagged=flagged, now=utcnow(), session=session
        )


@storage_errors
def get_flags(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Flag, ...]:
    """The session's currently flagged questions"""
    with session.begin():
        _owned(participant_id, session_id, session=session)
        return examiner.storage.flag.find(session_id, flagged=True, session=session)


@storage_errors
def get_flag_status(
    participant_id: UserID,
    session_id: SessionID,
    question_id: QuestionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    with session.begin():
        es = _owned(participant_id, session_id, session=session)
        _check_question(es, question_id, session=session)
        flag = examiner.storage.flag.get(session_id=session_id, question_id=question_id, session=session)
        return flag is not None and flag.flagged


@storage_errors
def clear_flags(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Unflag everything; returns how many questions were flagged"""
    with session.begin():
        _owned(participant_id, session_id, session=session)
        return examiner.storage.flag.clear(session_id, session=session)


@storage_errors
def flag_summary(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> FlagSummary:
    with session.begin():
        _owned(participant_id, session_id, session=session)
        by_kind = examiner.storage.flag.count_by_kind(session_id, session=session)
    return FlagSummary(total=sum(by_kind.values()), by_kind=by_kind)
