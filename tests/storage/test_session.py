"""Tests for examiner.storage.session module."""

from __future__ import annotations

import decimal
import typing as t

from sqlalchemy.orm import Session

from examiner.model import Assessment, ExamSession, Question, SessionStatus, User
from examiner.storage import answer as answer_storage
from examiner.storage import session as session_storage

if t.TYPE_CHECKING:
    from conftest import Clock


class TestFindOrCreate(object):
    """Tests for session_storage.find_or_create()."""

    def test_creates_once(
        self, db_session: Session, participant: User, assessment_factory: t.Callable[..., Assessment]
    ) -> None:
        assessment = assessment_factory()

        with db_session.begin():
            first, created = session_storage.find_or_create(
                participant_id=participant.user_id, assessment_id=assessment.assessment_id, session=db_session
            )
            second, created_again = session_storage.find_or_create(
                participant_id=participant.user_id, assessment_id=assessment.assessment_id, session=db_session
            )

        assert created is True
        assert created_again is False
        assert second.session_id == first.session_id
        assert first.status is SessionStatus.NotStarted


class TestTransitions(object):
    """Conditional status updates."""

    def test_mark_started_only_once(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(start=False)
        started_at = clock()

        with db_session.begin():
            assert session_storage.mark_started(es.session_id, now=started_at, session=db_session) is True
            later = clock.advance(minutes=1)
            assert session_storage.mark_started(es.session_id, now=later, session=db_session) is False
            after = session_storage.get(es.session_id, session=db_session)

        assert after is not None
        assert after.start_time == started_at

    def test_complete_and_terminate_are_exclusive(
        self,
        db_session: Session,
        clock: Clock,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Of two racing finishes only the first lands."""
        es, _ = session_factory()

        with db_session.begin():
            assert session_storage.mark_completed(es.session_id, now=clock(), session=db_session) is True
            assert session_storage.mark_terminated(es.session_id, now=clock(), session=db_session) is False
            assert session_storage.mark_completed(es.session_id, now=clock(), session=db_session) is False
            after = session_storage.get(es.session_id, session=db_session)

        assert after is not None
        assert after.status is SessionStatus.Completed

    def test_completion_sums_graded_marks(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: t.Callable[[Assessment], tuple[Question, ...]],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        """Only graded answers count toward the frozen score."""
        es, assessment = session_factory()
        select, short, coding = questions_of(assessment)

        with db_session.begin():
            for question, marks, graded in (
                (select, decimal.Decimal(2), True),
                (short, decimal.Decimal("1.5"), True),
                (coding, None, False),
            ):
                record = answer_storage.materialize(es.session_id, question, session=db_session)
                answer_storage.write_response(
                    record.answer_id,
                    response={"any": "thing"},
                    marks_obtained=marks,
                    graded=graded,
                    now=clock(),
                    session=db_session,
                )
            session_storage.mark_completed(es.session_id, now=clock(), session=db_session)
            after = session_storage.get(es.session_id, session=db_session)

        assert after is not None
        assert after.total_score == decimal.Decimal("3.5")

    def test_retotal_only_completed(
        self,
        db_session: Session,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()

        with db_session.begin():
            assert session_storage.retotal(es.session_id, session=db_session) is False


class TestViolations(object):
    """Tests for session_storage.increment_violations()."""

    def test_increments_in_progress(
        self,
        db_session: Session,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory()

        with db_session.begin():
            assert session_storage.increment_violations(es.session_id, session=db_session) == 1
            assert session_storage.increment_violations(es.session_id, session=db_session) == 2

    def test_ignores_not_started(
        self,
        db_session: Session,
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        es, _ = session_factory(start=False)

        with db_session.begin():
            assert session_storage.increment_violations(es.session_id, session=db_session) is None


class TestFindInProgressStartedBefore(object):
    """Tests for session_storage.find_in_progress_started_before()."""

    def test_cutoff_is_inclusive(
        self,
        db_session: Session,
        clock: Clock,
        user_factory: t.Callable[..., User],
        assessment_factory: t.Callable[..., Assessment],
        session_factory: t.Callable[..., tuple[ExamSession, Assessment]],
    ) -> None:
        assessment = assessment_factory()
        early, _ = session_factory(user=user_factory(), assessment=assessment)
        cutoff = clock()
        clock.advance(seconds=1)
        session_factory(user=user_factory(), assessment=assessment)

        with db_session.begin():
            found = session_storage.find_in_progress_started_before(
                assessment.assessment_id, cutoff=cutoff, session=db_session
            )

        assert [es.session_id for es in found] == [early.session_id]
