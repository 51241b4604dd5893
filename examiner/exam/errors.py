"""Exceptions raised by the session core.

Every exception carries a stable `code`, surfaced verbatim to API clients.
"""

from __future__ import annotations

import functools
import typing as t

from sqlalchemy.exc import SQLAlchemyError

P = t.ParamSpec("P")
TReturn = t.TypeVar("TReturn")


class ExamError(Exception):
    """Base class of every failure the session core reports"""

    code: str

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        self.message = message or code.replace("_", " ").capitalize()
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code!r}, {self.message!r})"


class AccessDenied(ExamError):
    """Admission was refused, or the actor may not act on the target"""


class NotFound(ExamError):
    """The assessment, session or question does not exist for the caller"""


class SessionStateError(ExamError):
    """The session is not in a state that permits the operation"""


class InvitationStateError(ExamError):
    """The invitation cannot make the requested transition"""


class TimeExpired(SessionStateError):
    def __init__(self, message: str | None = None):
        super().__init__("TIME_EXPIRED", message or "Time limit exceeded; the session has been completed")


class ValidationFailure(ExamError):
    """Input was rejected before any write"""


class InvalidResponse(ValidationFailure):
    def __init__(self, message: str | None = None):
        super().__init__("INVALID_RESPONSE", message)


class StorageFailure(ExamError):
    def __init__(self, message: str | None = None):
        super().__init__("STORAGE_ERROR", message or "The database is unavailable")


def storage_errors(fn: t.Callable[P, TReturn]) -> t.Callable[P, TReturn]:
    """Report database failures from `fn` as StorageFailure"""

    @functools.wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> TReturn:
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as e:
            raise StorageFailure(f"database error: {type(e).__name__}") from e

    return wrapper
