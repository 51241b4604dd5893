__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "AnswerID",
    "AssessmentID",
    "GrantID",
    "QuestionID",
    "ResponseID",
    "SessionID",
    "ShortUUIDKey",
    "UserID",
    # Users
    "User",
    "UserRole",
    # Assessments
    "AccessMode",
    "Assessment",
    "Question",
    "QuestionKind",
    # Grants
    "AccessGrant",
    "GrantStatus",
    # Sessions
    "ExamSession",
    "SessionStatus",
    "AnswerRecord",
    "Flag",
    "FlagSummary",
    # Reporting
    "GradingStatus",
    "StudentResponse",
]

from .answer import AnswerRecord
from .assessment import AccessMode, Assessment
from .base import BaseModel, WithCtime, WithMtime, WithTimestamps
from .enum import DeploymentEnvironment
from .flag import Flag, FlagSummary
from .grant import AccessGrant, GrantStatus
from .id import AnswerID, AssessmentID, GrantID, QuestionID, ResponseID, SessionID, ShortUUIDKey, UserID
from .question import Question, QuestionKind
from .response import GradingStatus, StudentResponse
from .session import ExamSession, SessionStatus
from .user import User, UserRole
