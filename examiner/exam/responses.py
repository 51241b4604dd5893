"""The student-response summary, written after a session finishes.

This is a reporting convenience: a failure to write it is logged and never
undoes the completion that triggered it.
"""

from __future__ import annotations

import decimal
import logging
import typing as t

import examiner.storage.answer
import examiner.storage.response
import examiner.storage.session
from examiner.core import TimestampProvider
from examiner.model import AnswerRecord, GradingStatus, SessionID, StudentResponse
from examiner.storage import Session

logger = logging.getLogger(__name__)


def grading_status(records: t.Sequence[AnswerRecord]) -> GradingStatus:
    """Completed once no answered question is waiting for review"""
    answered = [r for r in records if r.answered]
    awaiting = [r for r in answered if not r.graded]
    if not awaiting:
        return GradingStatus.Completed
    if len(awaiting) < len(answered):
        return GradingStatus.Partial
    return GradingStatus.Pending


def summarize(record: AnswerRecord) -> dict[str, t.Any]:
    return record.model_dump(
        include={"question_id", "kind", "position", "response", "marks", "marks_obtained", "graded"},
        mode="json",
    )


def write(
    session_id: SessionID,
    *,
    session: Session,
    utcnow: TimestampProvider,
) -> StudentResponse | None:
    """Write, or rewrite, the summary of a finished session in a transaction of its own"""
    try:
        with session.begin():
            es = examiner.storage.session.get(session_id, session=session)
            if es is None or not es.status.is_terminal or es.end_time is None:
                return None
            records = examiner.storage.answer.find(session_id, session=session)
            auto_score = sum(
                (r.marks_obtained for r in records if r.graded and r.marks_obtained is not None),
                decimal.Decimal(0),
            )
            return examiner.storage.response.upsert(
                session_id=session_id,
                assessment_id=es.assessment_id,
                participant_id=es.participant_id,
                answers=[summarize(r) for r in records],
                auto_score=auto_score,
                grading_status=grading_status(records),
                submitted_at=es.end_time,
                now=utcnow(),
                session=session,
            )
    except Exception:
        logger.exception("failed to write student response", extra={"session_id": session_id})
        return None
