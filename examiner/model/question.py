import decimal
import enum
import typing as t

from .base import WithTimestamps
from .id import AssessmentID, QuestionID


class QuestionKind(enum.Enum):
    SingleSelect = "single_select"
    ShortAnswer = "short_answer"
    Coding = "coding"


class Question(WithTimestamps):
    """A question-bank template; answer records copy `content` and `answer_key` from it"""

    question_id: QuestionID
    assessment_id: AssessmentID
    kind: QuestionKind
    position: int

    content: dict[str, t.Any]
    answer_key: dict[str, t.Any] | None = None
    marks: decimal.Decimal
