"""The session state machine.

    not_started -> in_progress -> completed
                               -> terminated

Each public operation runs in its own transaction on `session`, which must not
already be in one. Transitions are conditional updates on the expected status,
so of two racing requests exactly one wins and the other re-reads the winner's
row. Time is never stored as a countdown: expiry is recomputed from
`start_time` on every access and acted on then (lazy expiry).
"""

from __future__ import annotations

import datetime
import logging
import typing as t

import examiner.storage.assessment
import examiner.storage.session
from examiner.core import di, TimestampProvider
from examiner.model import Assessment, AssessmentID, ExamSession, SessionID, SessionStatus, UserID
from examiner.storage import Session

from . import clock, responses
from .access import Credential, decide
from .errors import AccessDenied, NotFound, SessionStateError, storage_errors, TimeExpired

logger = logging.getLogger(__name__)


class Guarded(t.NamedTuple):
    """A session after the expiry guard; `forced` if the guard just completed it.

    `now` is the instant the guard judged expiry by. Anything reported
    alongside the guarded session is computed from it.
    """

    session: ExamSession
    assessment: Assessment
    forced: bool
    now: datetime.datetime


def load(
    session_id: SessionID,
    *,
    participant_id: UserID | None,
    session: Session,
) -> tuple[ExamSession, Assessment]:
    """The session and its assessment; SESSION_NOT_FOUND unless it belongs to `participant_id` (when given)"""
    es = examiner.storage.session.get(session_id, participant_id=participant_id, session=session)
    if es is None:
        raise NotFound("SESSION_NOT_FOUND", "Session not found or access denied")
    assessment = examiner.storage.assessment.get(es.assessment_id, session=session)
    assert assessment is not None
    return es, assessment


def guard(es: ExamSession, assessment: Assessment, *, session: Session, utcnow: TimestampProvider) -> Guarded:
    """Force-complete `es` if it is in progress and out of time, within the caller's transaction"""
    now = utcnow()
    if not clock.session_expired(es, assessment, now):
        return Guarded(es, assessment, False, now)

    forced = examiner.storage.session.mark_completed(es.session_id, now=now, session=session)
    if forced:
        logger.info(
            "force-completed expired session",
            extra={"session_id": es.session_id, "assessment_id": es.assessment_id, "start_time": es.start_time},
        )
    refreshed = examiner.storage.session.get(es.session_id, session=session)
    assert refreshed is not None
    return Guarded(refreshed, assessment, forced, now)


def after_finish(guarded: Guarded, *, session: Session, utcnow: TimestampProvider) -> None:
    """Work that follows a committed transition won by this request"""
    if guarded.forced:
        responses.write(guarded.session.session_id, session=session, utcnow=utcnow)


@storage_errors
def enforce_time_limit(
    session_id: SessionID,
    *,
    participant_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Guarded:
    """The read-with-guard: load a session, completing it first if its time has run out.

    Never raises for expiry; callers inspect `forced` and the returned status.
    """
    with session.begin():
        es, assessment = load(session_id, participant_id=participant_id, session=session)
        guarded = guard(es, assessment, session=session, utcnow=utcnow)
    after_finish(guarded, session=session, utcnow=utcnow)
    return guarded


def require_active(
    session_id: SessionID,
    *,
    participant_id: UserID,
    session: Session,
    utcnow: TimestampProvider,
) -> tuple[ExamSession, Assessment]:
    """The guarded session, which must be in progress: TIME_EXPIRED if the guard fired, else SESSION_NOT_ACTIVE"""
    guarded = enforce_time_limit(session_id, participant_id=participant_id, session=session, utcnow=utcnow)
    if guarded.forced:
        raise TimeExpired()
    if guarded.session.status is not SessionStatus.InProgress:
        raise SessionStateError("SESSION_NOT_ACTIVE", f"Session is {guarded.session.status.value}")
    return guarded.session, guarded.assessment


@storage_errors
def create_or_resume_session(
    participant_id: UserID,
    assessment_id: AssessmentID,
    credential: Credential | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> ExamSession:
    """Admit the participant and return their session for the assessment.

    The session is created not_started on first admission; afterwards the
    existing row is returned unchanged, whatever its status.

    Raises:
        AccessDenied: with the reason access was refused
    """
    with session.begin():
        decision = decide(participant_id, assessment_id, credential, session=session, utcnow=utcnow)
        if decision.granted:
            es, created = examiner.storage.session.find_or_create(
                participant_id=participant_id, assessment_id=assessment_id, session=session
            )

    # commit before raising: a denial can carry the lazy expiry of an invitation
    if not decision.granted:
        assert decision.reason is not None
        raise AccessDenied(decision.reason)

    if created:
        logger.info(
            "created session",
            extra={"session_id": es.session_id, "participant_id": participant_id, "assessment_id": assessment_id},
        )
    return es


@storage_errors
def start_session(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> ExamSession:
    """Start the clock on a not_started session. On an in_progress session this is a resume and changes nothing.

    Raises:
        SessionStateError: ALREADY_FINISHED, TERMINATED, NOT_STARTED or ENDED
        TimeExpired: if a resumed session has run out of time
    """
    started = False
    with session.begin():
        es, assessment = load(session_id, participant_id=participant_id, session=session)
        match es.status:
            case SessionStatus.Completed:
                raise SessionStateError("ALREADY_FINISHED", "Session has already been completed")

            case SessionStatus.Terminated:
                raise SessionStateError("TERMINATED", "Session has been terminated")

            case SessionStatus.NotStarted:
                now = utcnow()
                match clock.window(assessment, now):
                    case clock.Window.NotStarted:
                        raise SessionStateError("NOT_STARTED", "Assessment has not started yet")
                    case clock.Window.Ended:
                        raise SessionStateError("ENDED", "Assessment has ended")
                    case clock.Window.Open:
                        pass
                started = examiner.storage.session.mark_started(session_id, now=now, session=session)
                refreshed = examiner.storage.session.get(session_id, session=session)
                assert refreshed is not None
                guarded = Guarded(refreshed, assessment, False, now)

            case SessionStatus.InProgress:
                guarded = guard(es, assessment, session=session, utcnow=utcnow)

    after_finish(guarded, session=session, utcnow=utcnow)
    if guarded.forced:
        raise TimeExpired()
    if started:
        logger.info(
            "started session",
            extra={
                "session_id": session_id,
                "participant_id": participant_id,
                "start_time": guarded.session.start_time,
            },
        )
    return guarded.session


@storage_errors
def complete_session(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> ExamSession:
    """Finish an in-progress session and freeze its score.

    Idempotent: a completed session is returned as it is, and a session that
    ran out of time is completed just the same as one submitted in time.

    Raises:
        SessionStateError: SESSION_NOT_ACTIVE if never started, TERMINATED
    """
    won = False
    with session.begin():
        es, assessment = load(session_id, participant_id=participant_id, session=session)
        match es.status:
            case SessionStatus.Completed:
                return es
            case SessionStatus.NotStarted:
                raise SessionStateError("SESSION_NOT_ACTIVE", "Session has not been started")
            case SessionStatus.Terminated:
                raise SessionStateError("TERMINATED", "Session has been terminated")
            case SessionStatus.InProgress:
                won = examiner.storage.session.mark_completed(session_id, now=utcnow(), session=session)

        completed = examiner.storage.session.get(session_id, session=session)
        assert completed is not None

    if won:
        logger.info(
            "completed session",
            extra={"session_id": session_id, "participant_id": participant_id, "total_score": completed.total_score},
        )
        responses.write(session_id, session=session, utcnow=utcnow)
    elif completed.status is SessionStatus.Terminated:
        raise SessionStateError("TERMINATED", "Session has been terminated")
    return completed


@storage_errors
def terminate_session(
    actor_id: UserID,
    session_id: SessionID,
    *,
    reason: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> ExamSession:
    """End a session early on behalf of the assessment's owner. Idempotent on a terminated session.

    Raises:
        AccessDenied: ACCESS_DENIED unless `actor_id` owns the assessment
        SessionStateError: ALREADY_FINISHED, SESSION_NOT_ACTIVE
    """
    with session.begin():
        es, assessment = load(session_id, participant_id=None, session=session)
        if assessment.owner_id != actor_id:
            raise AccessDenied("ACCESS_DENIED", "Only the assessment owner may terminate a session")
        guarded = guard(es, assessment, session=session, utcnow=utcnow)
        es = guarded.session
        won = False
        if es.status is SessionStatus.InProgress:
            won = examiner.storage.session.mark_terminated(session_id, now=utcnow(), session=session)
            refreshed = examiner.storage.session.get(session_id, session=session)
            assert refreshed is not None
            es = refreshed

    after_finish(guarded, session=session, utcnow=utcnow)
    match es.status:
        case SessionStatus.Completed:
            raise SessionStateError("ALREADY_FINISHED", "Session has already been completed")
        case SessionStatus.NotStarted:
            raise SessionStateError("SESSION_NOT_ACTIVE", "Session has not been started")
        case _:
            pass

    if won:
        logger.info("terminated session", extra={"session_id": session_id, "actor_id": actor_id, "reason": reason})
        responses.write(session_id, session=session, utcnow=utcnow)
    return es


@storage_errors
def record_violation(
    participant_id: UserID,
    session_id: SessionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> ExamSession:
    """Count a violation against an in-progress session, terminating it once `max_violations` is reached.

    Raises:
        TimeExpired: if the session had run out of time
        SessionStateError: SESSION_NOT_ACTIVE
    """
    _, assessment = require_active(session_id, participant_id=participant_id, session=session, utcnow=utcnow)

    terminated = False
    with session.begin():
        count = examiner.storage.session.increment_violations(session_id, session=session)
        if count is None:
            raise SessionStateError("SESSION_NOT_ACTIVE", "Session is no longer in progress")
        if assessment.max_violations is not None and count >= assessment.max_violations:
            terminated = examiner.storage.session.mark_terminated(session_id, now=utcnow(), session=session)
        refreshed = examiner.storage.session.get(session_id, session=session)
        assert refreshed is not None

    logger.info(
        "recorded violation",
        extra={"session_id": session_id, "violations_count": count, "max_violations": assessment.max_violations},
    )
    if terminated:
        logger.info("terminated session", extra={"session_id": session_id, "reason": "max_violations"})
        responses.write(session_id, session=session, utcnow=utcnow)
    return refreshed
