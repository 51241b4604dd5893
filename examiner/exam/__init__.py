__all__ = [
    # Admission
    "AccessDecision",
    "Credential",
    "validate_access",
    # Lifecycle
    "complete_session",
    "create_or_resume_session",
    "enforce_time_limit",
    "record_violation",
    "start_session",
    "terminate_session",
    # Timer
    "find_expiring",
    "format_remaining",
    "get_timer_info",
    "sweep_expired",
    "TimerInfo",
    "WarningLevel",
    # Answers
    "AnswerView",
    "get_session_overview",
    "open_question",
    "review_answer",
    "SessionOverview",
    "submit_answer",
    # Flags
    "clear_flags",
    "flag_summary",
    "get_flag_status",
    "get_flags",
    "set_flag",
    # Invitations
    "accept_invitation",
    "expire_stale_grants",
    "issue_invitation",
    # Errors
    "AccessDenied",
    "ExamError",
    "InvalidResponse",
    "InvitationStateError",
    "NotFound",
    "SessionStateError",
    "StorageFailure",
    "TimeExpired",
    "ValidationFailure",
]

from .access import AccessDecision, Credential, validate_access
from .errors import AccessDenied, ExamError, InvalidResponse, InvitationStateError, NotFound, SessionStateError, \
    StorageFailure, TimeExpired, ValidationFailure
from .flags import clear_flags, flag_summary, get_flag_status, get_flags, set_flag
from .invitation import accept_invitation, expire_stale_grants, issue_invitation
from .lifecycle import complete_session, create_or_resume_session, enforce_time_limit, record_violation, \
    start_session, terminate_session
from .submission import AnswerView, get_session_overview, open_question, review_answer, SessionOverview, \
    submit_answer
from .timer import find_expiring, format_remaining, get_timer_info, sweep_expired, TimerInfo, WarningLevel
