import datetime
import decimal
import enum
import typing as t

from .base import WithTimestamps
from .id import AssessmentID, ResponseID, SessionID, UserID


class GradingStatus(enum.Enum):
    Pending = "pending"
    Partial = "partial"
    Completed = "completed"


class StudentResponse(WithTimestamps):
    """Denormalized summary of a finished session, for reporting"""

    response_id: ResponseID
    session_id: SessionID
    assessment_id: AssessmentID
    participant_id: UserID

    answers: list[dict[str, t.Any]]
    auto_score: decimal.Decimal
    grading_status: GradingStatus
    submitted_at: datetime.datetime
