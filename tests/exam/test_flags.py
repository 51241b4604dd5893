"""Tests for examiner.exam.flags."""

from __future__ import annotations

import decimal
import typing as t

import pytest
from sqlalchemy.orm import Session

from examiner import exam
from examiner.core.config import ExamSettings
from examiner.model import Assessment, ExamSession, Question, QuestionID, QuestionKind, SessionStatus, User
from examiner.storage import answer as answer_storage
from examiner.storage import session as session_storage

if t.TYPE_CHECKING:
    from conftest import Clock

QuestionsOf = t.Callable[[Assessment], tuple[Question, ...]]
SessionFactory = t.Callable[..., tuple[ExamSession, Assessment]]


class TestSetFlag(object):
    """Tests for exam.set_flag()."""

    def test_flag_and_unflag(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: QuestionsOf,
        session_factory: SessionFactory,
    ) -> None:
        es, assessment = session_factory()
        question = questions_of(assessment)[0]

        flag = exam.set_flag(
            es.participant_id, es.session_id, question.question_id, True, session=db_session, utcnow=clock
        )
        assert flag.flagged is True
        assert exam.get_flag_status(es.participant_id, es.session_id, question.question_id, session=db_session)

        clock.advance(minutes=1)
        flag = exam.set_flag(
            es.participant_id, es.session_id, question.question_id, False, session=db_session, utcnow=clock
        )
        assert flag.flagged is False
        assert flag.update_time == clock()
        assert not exam.get_flag_status(es.participant_id, es.session_id, question.question_id, session=db_session)

    def test_flagging_twice_keeps_one_row(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: QuestionsOf,
        session_factory: SessionFactory,
    ) -> None:
        es, assessment = session_factory()
        question = questions_of(assessment)[0]

        for _ in range(2):
            exam.set_flag(
                es.participant_id, es.session_id, question.question_id, True, session=db_session, utcnow=clock
            )

        flags = exam.get_flags(es.participant_id, es.session_id, session=db_session)
        assert [f.question_id for f in flags] == [question.question_id]

    def test_allowed_before_start_and_after_finish(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: QuestionsOf,
        session_factory: SessionFactory,
    ) -> None:
        """Flags depend only on owning the session, not on its status."""
        es, assessment = session_factory(start=False)
        first, second, _ = questions_of(assessment)
        exam.set_flag(es.participant_id, es.session_id, first.question_id, True, session=db_session, utcnow=clock)
        exam.start_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)
        exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)

        exam.set_flag(es.participant_id, es.session_id, second.question_id, True, session=db_session, utcnow=clock)

        assert len(exam.get_flags(es.participant_id, es.session_id, session=db_session)) == 2

    def test_unknown_question(self, db_session: Session, clock: Clock, session_factory: SessionFactory) -> None:
        es, _ = session_factory()

        with pytest.raises(exam.NotFound) as exc:
            exam.set_flag(es.participant_id, es.session_id, QuestionID(), True, session=db_session, utcnow=clock)

        assert exc.value.code == "QUESTION_NOT_FOUND"

    def test_someone_elses_session(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: QuestionsOf,
        user_factory: t.Callable[..., User],
        session_factory: SessionFactory,
    ) -> None:
        es, assessment = session_factory()
        question = questions_of(assessment)[0]

        with pytest.raises(exam.NotFound) as exc:
            exam.set_flag(
                user_factory().user_id, es.session_id, question.question_id, True, session=db_session, utcnow=clock
            )

        assert exc.value.code == "SESSION_NOT_FOUND"


class TestFlagQueries(object):
    """Tests for get_flags(), clear_flags() and flag_summary()."""

    @pytest.fixture
    def flagged(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: QuestionsOf,
        session_factory: SessionFactory,
    ) -> tuple[ExamSession, tuple[Question, ...]]:
        """A session with the first and last questions flagged and the middle one unflagged."""
        es, assessment = session_factory()
        questions = questions_of(assessment)
        for question, value in zip(questions, (True, False, True)):
            exam.set_flag(
                es.participant_id, es.session_id, question.question_id, value, session=db_session, utcnow=clock
            )
            clock.advance(seconds=1)
        return es, questions

    def test_get_flags_returns_flagged_only(
        self, db_session: Session, flagged: tuple[ExamSession, tuple[Question, ...]]
    ) -> None:
        es, questions = flagged

        flags = exam.get_flags(es.participant_id, es.session_id, session=db_session)

        assert {f.question_id for f in flags} == {questions[0].question_id, questions[2].question_id}

    def test_summary_by_kind(self, db_session: Session, flagged: tuple[ExamSession, tuple[Question, ...]]) -> None:
        es, _ = flagged

        summary = exam.flag_summary(es.participant_id, es.session_id, session=db_session)

        assert summary.total == 2
        assert summary.by_kind == {QuestionKind.SingleSelect: 1, QuestionKind.Coding: 1}

    def test_clear_flags(self, db_session: Session, flagged: tuple[ExamSession, tuple[Question, ...]]) -> None:
        es, _ = flagged

        assert exam.clear_flags(es.participant_id, es.session_id, session=db_session) == 2
        assert exam.get_flags(es.participant_id, es.session_id, session=db_session) == ()
        assert exam.clear_flags(es.participant_id, es.session_id, session=db_session) == 0

    def test_empty_summary(self, db_session: Session, session_factory: SessionFactory) -> None:
        es, _ = session_factory()

        summary = exam.flag_summary(es.participant_id, es.session_id, session=db_session)

        assert summary.total == 0
        assert summary.by_kind == {}


class TestFlagIndependence(object):
    """Flags never touch answers or scores."""

    def test_flagging_creates_no_answer_record(
        self,
        db_session: Session,
        clock: Clock,
        questions_of: QuestionsOf,
        session_factory: SessionFactory,
    ) -> None:
        es, assessment = session_factory()
        question = questions_of(assessment)[0]

        exam.set_flag(es.participant_id, es.session_id, question.question_id, True, session=db_session, utcnow=clock)

        with db_session.begin():
            record = answer_storage.get(session_id=es.session_id, question_id=question.question_id, session=db_session)
        assert record is None

    def test_clearing_flags_keeps_total_score(
        self,
        db_session: Session,
        clock: Clock,
        policy: ExamSettings,
        questions_of: QuestionsOf,
        session_factory: SessionFactory,
    ) -> None:
        es, assessment = session_factory()
        select, short, _ = questions_of(assessment)
        exam.submit_answer(
            es.participant_id, es.session_id, select.question_id, {"selected_option": 1},
            session=db_session, utcnow=clock, policy=policy,
        )
        for question in (select, short):
            exam.set_flag(
                es.participant_id, es.session_id, question.question_id, True, session=db_session, utcnow=clock
            )
        completed = exam.complete_session(es.participant_id, es.session_id, session=db_session, utcnow=clock)
        assert completed.total_score == decimal.Decimal(2)

        assert exam.clear_flags(es.participant_id, es.session_id, session=db_session) == 2

        with db_session.begin():
            after = session_storage.get(es.session_id, session=db_session)
        assert after is not None
        assert after.status is SessionStatus.Completed
        assert after.total_score == decimal.Decimal(2)
