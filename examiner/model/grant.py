import datetime
import enum

from pydantic import EmailStr

from .base import WithTimestamps
from .id import AssessmentID, GrantID, UserID


class GrantStatus(enum.Enum):
    Pending = "pending"
    Accepted = "accepted"
    Expired = "expired"


class AccessGrant(WithTimestamps):
    grant_id: GrantID
    token: str
    email: EmailStr
    assessment_id: AssessmentID | None = None
    issued_by: UserID

    status: GrantStatus = GrantStatus.Pending
    expires_at: datetime.datetime
    accept_time: datetime.datetime | None = None
