"""Tests for examiner.exam.responses."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import pytest

from examiner.exam import responses
from examiner.model import AnswerID, AnswerRecord, GradingStatus, QuestionID, QuestionKind, SessionID

T0 = datetime.datetime(2026, 3, 2, 9, 0, tzinfo=datetime.UTC)


def record(answered: bool, graded: bool) -> AnswerRecord:
    return AnswerRecord(
        answer_id=AnswerID(),
        session_id=SessionID(),
        question_id=QuestionID(),
        kind=QuestionKind.ShortAnswer,
        position=1,
        content={"prompt": "?"},
        marks=decimal.Decimal(1),
        response={"text": "x"} if answered else None,
        marks_obtained=decimal.Decimal(1) if graded else None,
        graded=graded,
        create_time=T0,
        update_time=T0,
    )


@pytest.mark.parametrize(
    "records, expected",
    [
        ([], GradingStatus.Completed),
        ([record(False, False)], GradingStatus.Completed),
        ([record(True, True), record(False, False)], GradingStatus.Completed),
        ([record(True, True), record(True, False)], GradingStatus.Partial),
        ([record(True, False), record(True, False)], GradingStatus.Pending),
    ],
)
def test_grading_status(records: list[AnswerRecord], expected: GradingStatus) -> None:
    """Only answered questions count toward grading progress."""
    assert responses.grading_status(records) is expected


def test_summary_omits_answer_key() -> None:
    summary: dict[str, t.Any] = responses.summarize(record(True, True))

    assert "answer_key" not in summary
    assert summary["kind"] == "short_answer"
    assert summary["graded"] is True
    assert summary["response"] == {"text": "x"}
