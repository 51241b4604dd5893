"""Read-only views of session time, and the sweep that completes expired sessions."""

from __future__ import annotations

import datetime
import enum
import logging

import examiner.storage.assessment
import examiner.storage.session
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings
from examiner.core.config.exam import WarningThresholds
from examiner.model import AssessmentID, BaseModel, SessionID, SessionStatus, UserID
from examiner.storage import Session

from . import clock, responses
from .errors import NotFound, storage_errors
from .lifecycle import enforce_time_limit

logger = logging.getLogger(__name__)


class WarningLevel(enum.Enum):
    Critical = "critical"
    Warning = "warning"
    Info = "info"
    None_ = "none"


class TimerInfo(BaseModel):
    session_id: SessionID
    assessment_id: AssessmentID
    participant_id: UserID
    status: SessionStatus
    start_time: datetime.datetime | None
    duration_minutes: int
    remaining_seconds: int
    remaining: str
    is_expired: bool
    warning: WarningLevel
    message: str | None = None


class ExpiringSession(BaseModel):
    session_id: SessionID
    participant_id: UserID
    remaining_seconds: int


def warning_level(remaining_seconds: int, thresholds: WarningThresholds) -> WarningLevel:
    if remaining_seconds <= thresholds.critical:
        return WarningLevel.Critical
    if remaining_seconds <= thresholds.warning:
        return WarningLevel.Warning
    if remaining_seconds <= thresholds.info:
        return WarningLevel.Info
    return WarningLevel.None_


def warning_message(remaining_seconds: int, thresholds: WarningThresholds, *, expired: bool) -> str | None:
    match warning_level(remaining_seconds, thresholds):
        case WarningLevel.Critical if expired:
            return "Time has expired! Exam will be auto-submitted."
        case WarningLevel.Critical:
            return "Less than 1 minute remaining!"
        case WarningLevel.Warning:
            return "5 minutes remaining. Please review your answers."
        case WarningLevel.Info:
            return "10 minutes remaining."
        case WarningLevel.None_:
            return None


def format_remaining(seconds: int) -> str:
    return clock.format_remaining(seconds)


@storage_errors
def get_timer_info(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    policy: ExamSettings = di.Provide["exam"],
) -> TimerInfo:
    """Time left on the participant's session.

    Reading the timer of an expired in-progress session completes it; the
    returned status is the one after that. A session that has not started
    reports its whole budget.
    """
    guarded = enforce_time_limit(session_id, participant_id=participant_id, session=session, utcnow=utcnow)
    es, assessment = guarded.session, guarded.assessment

    if es.status.is_terminal:
        # a finished session is judged at the moment it stopped
        expired = clock.is_expired(es.start_time, assessment.duration, es.end_time or guarded.now)
        shown = 0
    else:
        expired = clock.is_expired(es.start_time, assessment.duration, guarded.now)
        shown = clock.remaining_seconds(es.start_time, assessment.duration, guarded.now)

    if es.status.is_terminal and not expired:
        warning, message = WarningLevel.None_, None
    else:
        warning = warning_level(shown, policy.warnings)
        message = warning_message(shown, policy.warnings, expired=expired)
    return TimerInfo(
        session_id=es.session_id,
        assessment_id=es.assessment_id,
        participant_id=es.participant_id,
        status=es.status,
        start_time=es.start_time,
        duration_minutes=assessment.duration_minutes,
        remaining_seconds=shown,
        remaining=format_remaining(shown),
        is_expired=expired,
        warning=warning,
        message=message,
    )


@storage_errors
def sweep_expired(
    assessment_id: AssessmentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> int:
    """Complete every in-progress session of the assessment that has run out of time.

    Returns:
        How many sessions this call completed; sessions completed concurrently
        by someone else are not counted
    """
    completed: list[SessionID] = []
    with session.begin():
        assessment = examiner.storage.assessment.get(assessment_id, session=session)
        if assessment is None:
            raise NotFound("NOT_FOUND", "Assessment not found")
        now = utcnow()
        candidates = examiner.storage.session.find_in_progress_started_before(
            assessment_id, cutoff=now - assessment.duration, session=session
        )
        for es in candidates:
            if examiner.storage.session.mark_completed(es.session_id, now=now, session=session):
                completed.append(es.session_id)

    for session_id in completed:
        responses.write(session_id, session=session, utcnow=utcnow)
    logger.info("swept expired sessions", extra={"assessment_id": assessment_id, "completed": len(completed)})
    return len(completed)


@storage_errors
def find_expiring(
    assessment_id: AssessmentID,
    within_minutes: int = 5,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> list[ExpiringSession]:
    """In-progress sessions with some time left, but no more than `within_minutes`, soonest first"""
    with session.begin():
        assessment = examiner.storage.assessment.get(assessment_id, session=session)
        if assessment is None:
            raise NotFound("NOT_FOUND", "Assessment not found")
        active = examiner.storage.session.find(
            assessment_id=assessment_id, status=SessionStatus.InProgress, session=session
        )

    now = utcnow()
    window = within_minutes * 60 * 1000
    expiring: list[ExpiringSession] = []
    for es in active:
        left = clock.remaining_ms(es.start_time, assessment.duration, now)
        if 0 < left <= window:
            expiring.append(
                ExpiringSession(
                    session_id=es.session_id, participant_id=es.participant_id, remaining_seconds=left // 1000
                )
            )
    return sorted(expiring, key=lambda e: e.remaining_seconds)
