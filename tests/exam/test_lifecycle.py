"""Tests for examiner.exam.lifecycle."""

from __future__ import annotations

import datetime
import decimal
import typing as t

import pytest
from sqlalchemy.orm import Session

from examiner import exam
from examiner.model import Assessment, ExamSession, SessionID, SessionStatus, User, UserRole
from examiner.storage import response as response_storage
from examiner.storage import session as session_storage

if t.TYPE_CHECKING:
    from conftest import Clock


class TestCreateOrResumeSession(object):
    """Tests for exam.create_or_resume_session()."""

    def test_creates_not_started_session(
        self,
        db_session: Session,
        clock: Clock,
        participant: User,
        assessment_factory: t.Callable[..., Assessment],
    ) -> None:
        """First admission creates a not_started session with no clock running."""
        assessment = assessment_factory()

        es = exam.create_or_resume_session(
            participant.user_id, assessment.assessment_id, session=db_session, utcnow=clock
        )

        assert es.status is SessionStatus.NotStarted
        assert es.participant_id == participant.user_id
        assert es.assessment_id == assessment.assessment_id
        assert es.start_time is None
        assert es.violations_count == 0

    def test_repeat_returns_same_session(
        self,
        db_session: Session,
        clock: Clock,
        participant: User,
        assessment_factory: t.Callable[..., Assessment],
    ) -> None:
        """Joining twice returns the one session for the pair."""
        assessment = assessment_factory()

        first = exam.create_or_resume_session(
            participant.user_id, assessment.assessment_id, session=db_session, utcnow=clock
        )
        second = exam.create_or_resume_session(
            participant.user_id, assessment.assessment_id, session=db_session, utcnow=clock
        )

        assert second.session_id == first.session_id
        with db_session.begin():
            assert len(session_storage.find(assessment_id=assessment.assessment_id, session=db_session)) == 1

    def test_resume_after_window_closes(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """A live session is let back in even once the scheduling window has ended."""
        es, assessment = session_factory(end_time=clock() + datetime.timedelta(minutes=10), duration_minutes=60)
        clock.advance(minutes=30)

        resumed = exam.create_or_resume_session(
            es.participant_id, assessment.assessment_id, session=db_session, utcnow=clock
        )

        assert resumed.session_id == es.session_id
        assert resumed.status is SessionStatus.InProgress

    def test_denied_raises_with_reason(
        self,
        db_session: Session,
        clock: Clock,
        participant: User,
        assessment_factory: t.Callable[..., Assessment],
    ) -> None:
        """A refused admission raises AccessDenied carrying the reason, and creates nothing."""
        assessment = assessment_factory(start_time=clock() + datetime.timedelta(hours=1))

        with pytest.raises(exam.AccessDenied) as exc:
            exam.create_or_resume_session(
                participant.user_id, assessment.assessment_id, session=db_session, utcnow=clock
            )

        assert exc.value.code == "NOT_STARTED"
        with db_session.begin():
            assert session_storage.find(assessment_id=assessment.assessment_id, session=db_session) == ()

    def test_completed_session_is_returned_unchanged(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """A finished participant who joins again gets their finished session back."""
        es, assessment = session_factory()
        exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        again = exam.create_or_resume_session(
            es.participant_id, assessment.assessment_id, session=db_session, utcnow=clock
        )

        assert again.session_id == es.session_id
        assert again.status is SessionStatus.Completed


class TestStartSession(object):
    """Tests for exam.start_session()."""

    def test_start_stamps_start_time(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Starting moves the session to in_progress at the current time."""
        es, _ = session_factory(start=False)

        started = exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert started.status is SessionStatus.InProgress
        assert started.start_time == clock()

    def test_resume_keeps_start_time(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Starting an in-progress session is a resume; the clock is not restarted."""
        es, _ = session_factory()
        started_at = es.start_time
        clock.advance(minutes=20)

        resumed = exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert resumed.status is SessionStatus.InProgress
        assert resumed.start_time == started_at

    def test_before_window_opens(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """A not_started session cannot start before the window opens."""
        es, _ = session_factory(start=False)
        clock.advance(hours=-2)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "NOT_STARTED"

    def test_after_window_ends(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """A not_started session cannot start once the window has ended."""
        es, _ = session_factory(start=False)
        clock.advance(days=2)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "ENDED"
        with db_session.begin():
            unchanged = session_storage.get(es.session_id, session=db_session)
        assert unchanged is not None
        assert unchanged.status is SessionStatus.NotStarted

    def test_start_completed_session(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()
        exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "ALREADY_FINISHED"

    def test_resume_after_time_runs_out(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Resuming an expired session completes it and reports TIME_EXPIRED."""
        es, _ = session_factory(duration_minutes=30)
        deadline = clock.advance(minutes=30)

        with pytest.raises(exam.TimeExpired) as exc:
            exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "TIME_EXPIRED"
        with db_session.begin():
            completed = session_storage.get(es.session_id, session=db_session)
        assert completed is not None
        assert completed.status is SessionStatus.Completed
        assert completed.end_time == deadline

    def test_unknown_session(self, db_session: Session, clock: Clock, participant: User) -> None:
        with pytest.raises(exam.NotFound) as exc:
            exam.start_session(participant.user_id, SessionID(), session=db_session, utcnow=clock)

        assert exc.value.code == "SESSION_NOT_FOUND"

    def test_someone_elses_session(
        self,
        db_session: Session,
        clock: Clock,
        user_factory: t.Callable[..., User],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Another participant's session is indistinguishable from a missing one."""
        es, _ = session_factory(start=False)
        intruder = user_factory()

        with pytest.raises(exam.NotFound) as exc:
            exam.start_session(intruder.user_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "SESSION_NOT_FOUND"


class TestEnforceTimeLimit(object):
    """Tests for exam.enforce_time_limit()."""

    def test_leaves_live_session_alone(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()
        clock.advance(minutes=59, seconds=59)

        guarded = exam.enforce_time_limit(es.session_id, session=db_session, utcnow=clock)

        assert guarded.forced is False
        assert guarded.session.status is SessionStatus.InProgress
        assert guarded.now == clock()

    def test_completes_at_deadline(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """At exactly the deadline the session is force-completed and its summary written."""
        es, _ = session_factory()
        clock.advance(minutes=60)

        guarded = exam.enforce_time_limit(es.session_id, session=db_session, utcnow=clock)

        assert guarded.forced is True
        assert guarded.session.status is SessionStatus.Completed
        assert guarded.session.total_score == decimal.Decimal(0)
        with db_session.begin():
            summary = response_storage.get(es.session_id, session=db_session)
        assert summary is not None
        assert summary.submitted_at == clock()

    def test_second_guard_does_not_fire_again(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()
        clock.advance(hours=2)
        exam.enforce_time_limit(es.session_id, session=db_session, utcnow=clock)
        clock.advance(minutes=5)

        guarded = exam.enforce_time_limit(es.session_id, session=db_session, utcnow=clock)

        assert guarded.forced is False
        assert guarded.session.end_time == clock() - datetime.timedelta(minutes=5)

    def test_not_started_session_never_expires(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(start=False)
        clock.advance(hours=12)

        guarded = exam.enforce_time_limit(es.session_id, session=db_session, utcnow=clock)

        assert guarded.forced is False
        assert guarded.session.status is SessionStatus.NotStarted


class TestCompleteSession(object):
    """Tests for exam.complete_session()."""

    def test_freezes_score(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: t.Callable[[Assessment], t.Sequence[t.Any]],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Completion records the sum of graded marks as the session's score."""
        es, assessment = session_factory()
        select, short, _ = questions_of(assessment)
        exam.submit_answer(
            es.participant_id, es.session_id, select.question_id, {"selected_option": 1},
            session=db_session, utcnow=clock,
        )
        exam.submit_answer(
            es.participant_id, es.session_id, short.question_id, {"text": "disorder"},
            session=db_session, utcnow=clock,
        )
        clock.advance(minutes=15)

        completed = exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert completed.status is SessionStatus.Completed
        assert completed.end_time == clock()
        assert completed.total_score == decimal.Decimal(2)

    def test_is_idempotent(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Completing twice returns the first completion unchanged."""
        es, _ = session_factory()
        first = exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)
        clock.advance(minutes=1)

        second = exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert second.status is SessionStatus.Completed
        assert second.end_time == first.end_time
        assert second.total_score == first.total_score

    def test_writes_student_response(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, assessment = session_factory()

        exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        with db_session.begin():
            summary = response_storage.get(es.session_id, session=db_session)
        assert summary is not None
        assert summary.assessment_id == assessment.assessment_id
        assert summary.participant_id == es.participant_id
        assert summary.answers == []
        assert summary.auto_score == decimal.Decimal(0)

    def test_after_time_runs_out(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Submitting late still completes the session."""
        es, _ = session_factory()
        clock.advance(hours=3)

        completed = exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert completed.status is SessionStatus.Completed

    def test_not_started(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(start=False)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "SESSION_NOT_ACTIVE"

    def test_terminated(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor)
        exam.terminate_session(instructor.user_id, es.session_id, session=db_session, utcnow=clock)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "TERMINATED"


class TestTerminateSession(object):
    """Tests for exam.terminate_session()."""

    def test_owner_terminates(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor)
        clock.advance(minutes=5)

        terminated = exam.terminate_session(
            instructor.user_id, es.session_id, reason="left the room", session=db_session, utcnow=clock
        )

        assert terminated.status is SessionStatus.Terminated
        assert terminated.end_time == clock()
        with db_session.begin():
            assert response_storage.get(es.session_id, session=db_session) is not None

    def test_is_idempotent(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor)
        first = exam.terminate_session(instructor.user_id, es.session_id, session=db_session, utcnow=clock)
        clock.advance(minutes=1)

        second = exam.terminate_session(instructor.user_id, es.session_id, session=db_session, utcnow=clock)

        assert second.status is SessionStatus.Terminated
        assert second.end_time == first.end_time

    def test_only_owner(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        user_factory: t.Callable[..., User],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """An instructor who does not own the assessment may not terminate its sessions."""
        es, _ = session_factory(owner=instructor)
        other = user_factory(role=UserRole.Instructor)

        with pytest.raises(exam.AccessDenied) as exc:
            exam.terminate_session(other.user_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "ACCESS_DENIED"

    def test_completed_session(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor)
        exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.terminate_session(instructor.user_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "ALREADY_FINISHED"

    def test_expired_session_is_completed_instead(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """A session already out of time is completed by the guard, not terminated."""
        es, _ = session_factory(owner=instructor)
        clock.advance(hours=2)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.terminate_session(instructor.user_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "ALREADY_FINISHED"
        with db_session.begin():
            after = session_storage.get(es.session_id, session=db_session)
        assert after is not None
        assert after.status is SessionStatus.Completed

    def test_not_started(
        self,
        db_session: Session,
        clock: Clock,
        instructor: User,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(owner=instructor, start=False)

        with pytest.raises(exam.SessionStateError) as exc:
            exam.terminate_session(instructor.user_id, es.session_id, session=db_session, utcnow=clock)

        assert exc.value.code == "SESSION_NOT_ACTIVE"


class TestRecordViolation(object):
    """Tests for exam.record_violation()."""

    def test_counts_violations(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()

        exam.record_violation(es.participant_id, es.session_id, session=db_session, utcnow=clock)
        updated = exam.record_violation(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert updated.violations_count == 2
        assert updated.status is SessionStatus.InProgress

    def test_terminates_at_limit(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Reaching max_violations terminates the session."""
        es, _ = session_factory(max_violations=2)

        first = exam.record_violation(es.participant_id, es.session_id, session=db_session, utcnow=clock)
        second = exam.record_violation(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        assert first.status is SessionStatus.InProgress
        assert second.status is SessionStatus.Terminated
        assert second.violations_count == 2
        with pytest.raises(exam.SessionStateError) as exc:
            exam.record_violation(es.participant_id, es.session_id, session=db_session, utcnow=clock)
        assert exc.value.code == "SESSION_NOT_ACTIVE"

    def test_expired_session(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()
        clock.advance(minutes=61)

        with pytest.raises(exam.TimeExpired):
            exam.record_violation(es.participant_id, es.session_id, session=db_session, utcnow=clock)
