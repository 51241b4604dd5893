import datetime
import decimal
import enum

from .base import WithTimestamps
from .id import AssessmentID, UserID


class AccessMode(enum.Enum):
    Invitation = "invitation"
    Code = "code"
    Open = "open"


class Assessment(WithTimestamps):
    assessment_id: AssessmentID
    owner_id: UserID

    title: str
    description: str | None = None

    start_time: datetime.datetime
    end_time: datetime.datetime
    duration_minutes: int

    access_mode: AccessMode = AccessMode.Open
    access_code: str | None = None

    max_violations: int | None = None
    require_proctor_signal: bool = False
    is_published: bool = False

    total_marks: decimal.Decimal = decimal.Decimal(0)

    @property
    def duration(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self.duration_minutes)
