import enum

from pydantic import EmailStr

from .base import WithTimestamps
from .id import UserID


class UserRole(enum.Enum):
    Instructor = "instructor"
    Participant = "participant"


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole
    password_hash: str | None = None
