import datetime
import decimal
import typing as t

from .base import WithTimestamps
from .id import AnswerID, QuestionID, SessionID, UserID
from .question import QuestionKind


class AnswerRecord(WithTimestamps):
    answer_id: AnswerID
    session_id: SessionID
    question_id: QuestionID

    # snapshot of the question at materialization
    kind: QuestionKind
    position: int
    content: dict[str, t.Any]
    answer_key: dict[str, t.Any] | None = None
    marks: decimal.Decimal

    response: dict[str, t.Any] | None = None
    answer_time: datetime.datetime | None = None

    marks_obtained: decimal.Decimal | None = None
    graded: bool = False
    grader_id: UserID | None = None
    grader_comments: str | None = None

    @property
    def answered(self) -> bool:
        return self.response is not None
