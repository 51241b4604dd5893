from .base import BaseModel, WithTimestamps
from .id import QuestionID, SessionID
from .question import QuestionKind


class Flag(WithTimestamps):
    session_id: SessionID
    question_id: QuestionID
    flagged: bool


class FlagSummary(BaseModel):
    total: int
    by_kind: dict[QuestionKind, int]
