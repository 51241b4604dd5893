import datetime
import decimal
import enum

from .base import WithTimestamps
from .id import AssessmentID, SessionID, UserID


class SessionStatus(enum.Enum):
    NotStarted = "not_started"
    InProgress = "in_progress"
    Completed = "completed"
    Terminated = "terminated"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.Completed, SessionStatus.Terminated)


class ExamSession(WithTimestamps):
    """One participant's attempt at one assessment"""

    session_id: SessionID
    assessment_id: AssessmentID
    participant_id: UserID

    status: SessionStatus = SessionStatus.NotStarted
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None

    total_score: decimal.Decimal | None = None
    violations_count: int = 0
