"""View models for answer endpoints."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import annotated_types as ant

from examiner.model import AnswerRecord, BaseModel, QuestionID, QuestionKind, SessionID, UserID


class SubmitAnswerRequest(BaseModel):
    response: dict[str, t.Any]


class SubmittedAnswerResponse(BaseModel):
    """What the participant learns from a submission: it was stored, not how it scored"""

    session_id: SessionID
    question_id: QuestionID
    response: dict[str, t.Any]
    answer_time: datetime.datetime


class ReviewRequest(BaseModel):
    marks: t.Annotated[decimal.Decimal, ant.Ge(0)]
    comments: str | None = None


class ReviewedAnswerResponse(BaseModel):
    session_id: SessionID
    question_id: QuestionID
    kind: QuestionKind
    response: dict[str, t.Any] | None
    marks: decimal.Decimal
    marks_obtained: decimal.Decimal | None
    graded: bool
    grader_id: UserID | None
    grader_comments: str | None

    @classmethod
    def of(cls, record: AnswerRecord) -> ReviewedAnswerResponse:
        return cls(
            session_id=record.session_id,
            question_id=record.question_id,
            kind=record.kind,
            response=record.response,
            marks=record.marks,
            marks_obtained=record.marks_obtained,
            graded=record.graded,
            grader_id=record.grader_id,
            grader_comments=record.grader_comments,
        )
