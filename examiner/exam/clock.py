"""Time arithmetic for sessions: pure functions over stored timestamps."""

from __future__ import annotations

import datetime
import enum

from examiner.model import Assessment, ExamSession, SessionStatus


class Window(enum.Enum):
    NotStarted = "NOT_STARTED"
    Open = "OPEN"
    Ended = "ENDED"


def window(assessment: Assessment, now: datetime.datetime) -> Window:
    """Where `now` falls relative to the assessment's scheduling window; both ends are inclusive"""
    if now < assessment.start_time:
        return Window.NotStarted
    if now > assessment.end_time:
        return Window.Ended
    return Window.Open


def deadline(start_time: datetime.datetime, duration: datetime.timedelta) -> datetime.datetime:
    return start_time + duration


def remaining_ms(
    start_time: datetime.datetime | None, duration: datetime.timedelta, now: datetime.datetime
) -> int:
    """
    Milliseconds left of the time budget, never negative. A session whose
    clock has not started has its whole budget left.
    """
    budget = duration // datetime.timedelta(milliseconds=1)
    if start_time is None:
        return budget
    elapsed = (now - start_time) // datetime.timedelta(milliseconds=1)
    return max(0, budget - elapsed)


def remaining_seconds(
    start_time: datetime.datetime | None, duration: datetime.timedelta, now: datetime.datetime
) -> int:
    return remaining_ms(start_time, duration, now) // 1000


def is_expired(start_time: datetime.datetime | None, duration: datetime.timedelta, now: datetime.datetime) -> bool:
    return start_time is not None and remaining_ms(start_time, duration, now) == 0


def session_expired(es: ExamSession, assessment: Assessment, now: datetime.datetime) -> bool:
    """True for an in_progress session whose budget has run out"""
    return es.status is SessionStatus.InProgress and is_expired(es.start_time, assessment.duration, now)


def format_remaining(seconds: int) -> str:
    """HH:MM:SS; negative input is clamped to zero"""
    seconds = max(0, seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
