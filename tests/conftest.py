"""Pytest fixtures for Examiner tests.

Tests run against the Test environment's in-memory SQLite database. The schema
is created before and dropped after every test, so each test starts empty.
Time is controlled by a `Clock` that every operation, and the web app, reads.

Usage:
    def test_start(db_session, clock, participant, assessment_factory):
        assessment = assessment_factory()
        es = exam.create_or_resume_session(participant.user_id, assessment.assessment_id,
                                           session=db_session, utcnow=clock)
"""

from __future__ import annotations

import datetime
import decimal
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
import sqlalchemy
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import examiner
from examiner import exam
from examiner.core import ExaminerContainer
from examiner.core.config import ExamSettings
from examiner.core.container.storage import provide_session
from examiner.model import AccessGrant, AccessMode, Assessment, DeploymentEnvironment, ExamSession, GrantStatus, \
    Question, QuestionKind, User, UserID, UserRole
from examiner.storage import assessment as assessment_storage
from examiner.storage import grant as grant_storage
from examiner.storage import question as question_storage
from examiner.storage import user as user_storage
from examiner.storage.table import base

NOW = datetime.datetime(2026, 3, 2, 9, 0, tzinfo=datetime.UTC)

DEFAULT_QUESTIONS: list[dict[str, t.Any]] = [
    {
        "kind": QuestionKind.SingleSelect,
        "content": {"prompt": "2 + 2 = ?", "options": ["3", "4", "5"]},
        "answer_key": {"correct_option": 1},
        "marks": decimal.Decimal(2),
    },
    {
        "kind": QuestionKind.ShortAnswer,
        "content": {"prompt": "Define entropy."},
        "marks": decimal.Decimal(3),
    },
    {
        "kind": QuestionKind.Coding,
        "content": {"prompt": "Reverse a list.", "language": "python"},
        "marks": decimal.Decimal(5),
    },
]


class Clock(object):
    """A settable stand-in for `utcnow`"""

    def __init__(self, now: datetime.datetime):
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime.datetime:
        self.now += datetime.timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def container() -> t.Generator[ExaminerContainer]:
    """Boot the DI container once for the test session, in the Test environment."""
    ct = ExaminerContainer()
    root = Path(os.path.dirname(examiner.__file__)).parent

    ExaminerContainer.boot(
        ct,
        debug=False,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def clock(container: ExaminerContainer) -> t.Generator[Clock]:
    """A clock fixed at NOW, provided to the container as `utcnow`."""
    c = Clock(NOW)
    container.utcnow.override(c)
    container.auth().jwt_manager.reset()

    yield c

    container.utcnow.reset_override()
    container.auth().jwt_manager.reset()


@pytest.fixture
def engine(container: ExaminerContainer) -> t.Generator[sqlalchemy.Engine]:
    engine = container.storage().persistent().engine()
    base.metadata.create_all(engine)

    yield engine

    base.metadata.drop_all(engine)


@pytest.fixture
def db_session(engine: sqlalchemy.Engine) -> t.Generator[Session]:
    """A session configured as in production: no autobegin, no expiry on commit."""
    session = provide_session(engine)

    yield session

    session.close()


@pytest.fixture
def policy() -> ExamSettings:
    return ExamSettings()


@pytest.fixture
def user_factory(db_session: Session) -> t.Callable[..., User]:
    """Factory fixture for creating users.

    Usage:
        def test_something(user_factory):
            instructor = user_factory(role=UserRole.Instructor)
    """

    def create_user(
        email: str | None = None,
        name: str = "Test User",
        role: UserRole = UserRole.Participant,
        password: str = "password123",
    ) -> User:
        if email is None:
            email = f"{role.value}-{UserID().key[:8].lower()}@example.com"
        with db_session.begin():
            return user_storage.create(
                email=email, name=name, role=role, password=p.Secret(password), session=db_session
            )

    return create_user


@pytest.fixture
def instructor(user_factory: t.Callable[..., User]) -> User:
    return user_factory(email="instructor@example.com", name="Ada Instructor", role=UserRole.Instructor)


@pytest.fixture
def participant(user_factory: t.Callable[..., User]) -> User:
    return user_factory(email="participant@example.com", name="Pat Participant", role=UserRole.Participant)


@pytest.fixture
def assessment_factory(
    db_session: Session, clock: Clock, user_factory: t.Callable[..., User]
) -> t.Callable[..., Assessment]:
    """Factory fixture for creating assessments with their questions.

    The window opens an hour before the clock and closes a day after it;
    assessments are published unless asked otherwise.
    """

    def create_assessment(
        owner: User | None = None,
        title: str = "Midterm",
        start_time: datetime.datetime | None = None,
        end_time: datetime.datetime | None = None,
        duration_minutes: int = 60,
        access_mode: AccessMode = AccessMode.Open,
        access_code: str | None = None,
        max_violations: int | None = None,
        is_published: bool = True,
        questions: list[dict[str, t.Any]] | None = None,
    ) -> Assessment:
        if owner is None:
            owner = user_factory(role=UserRole.Instructor)
        with db_session.begin():
            created = assessment_storage.create(
                owner_id=owner.user_id,
                title=title,
                start_time=start_time or clock() - datetime.timedelta(hours=1),
                end_time=end_time or clock() + datetime.timedelta(days=1),
                duration_minutes=duration_minutes,
                access_mode=access_mode,
                access_code=access_code,
                max_violations=max_violations,
                is_published=is_published,
                session=db_session,
            )
            for position, q in enumerate(DEFAULT_QUESTIONS if questions is None else questions, start=1):
                question_storage.create(assessment_id=created.assessment_id, position=position, session=db_session, **q)
            assessment_storage.refresh_total_marks(created.assessment_id, session=db_session)
            result = assessment_storage.get(created.assessment_id, session=db_session)
        assert result is not None
        return result

    return create_assessment


@pytest.fixture
def questions_of(db_session: Session) -> t.Callable[[Assessment], tuple[Question, ...]]:
    def find_questions(assessment: Assessment) -> tuple[Question, ...]:
        with db_session.begin():
            return question_storage.find(assessment.assessment_id, session=db_session)

    return find_questions


@pytest.fixture
def grant_factory(db_session: Session, clock: Clock) -> t.Callable[..., AccessGrant]:
    """Factory fixture for creating invitations directly in storage."""

    def create_grant(
        email: str,
        issuer: User,
        assessment: Assessment | None = None,
        expires_in: datetime.timedelta = datetime.timedelta(days=7),
        accepted: bool = False,
    ) -> AccessGrant:
        with db_session.begin():
            grant = grant_storage.create(
                email=email,
                issued_by=issuer.user_id,
                assessment_id=assessment.assessment_id if assessment else None,
                expires_at=clock() + expires_in,
                session=db_session,
            )
            if accepted:
                grant_storage.transition(
                    grant.grant_id,
                    from_status=GrantStatus.Pending,
                    to_status=GrantStatus.Accepted,
                    accept_time=clock(),
                    session=db_session,
                )
            result = grant_storage.get(grant_id=grant.grant_id, session=db_session)
        assert result is not None
        return result

    return create_grant


@pytest.fixture
def session_factory(
    db_session: Session,
    clock: Clock,
    participant: User,
    assessment_factory: t.Callable[..., Assessment],
) -> t.Callable[..., tuple[ExamSession, Assessment]]:
    """Factory fixture for admitting a participant and, by default, starting their session.

    Usage:
        def test_something(session_factory):
            es, assessment = session_factory(duration_minutes=30)
    """

    def create_session(
        user: User | None = None,
        assessment: Assessment | None = None,
        start: bool = True,
        **assessment_kwargs: t.Any,
    ) -> tuple[ExamSession, Assessment]:
        user = user or participant
        assessment = assessment or assessment_factory(**assessment_kwargs)
        es = exam.create_or_resume_session(
            user.user_id, assessment.assessment_id, session=db_session, utcnow=clock
        )
        if start:
            es = exam.start_session(user.user_id, es.session_id, session=db_session, utcnow=clock)
        return es, assessment

    return create_session


@pytest.fixture(scope="session")
def app(container: ExaminerContainer) -> FastAPI:
    """The web application, wired to the booted container."""
    from examiner.core.config.web import ExaminerWebSettings
    from examiner.web.examiner.main import _create_app  # pyright: ignore[reportPrivateUsage]

    container.wire(
        modules=[
            "examiner.web.examiner.main",
            "examiner.web.examiner.route.answer",
            "examiner.web.examiner.route.auth",
            "examiner.web.examiner.route.flag",
            "examiner.web.examiner.route.invitation",
            "examiner.web.examiner.route.monitor",
            "examiner.web.examiner.route.session",
            "examiner.auth.middleware",
            "examiner.auth.jwt",
            "examiner.auth.local",
        ]
    )

    return _create_app(
        config=ExaminerWebSettings(**container.config.web.examiner()),
        env=DeploymentEnvironment.Test,
        root_path=t.cast(Path, container.root()),
    )


@pytest.fixture
def client(app: FastAPI, engine: sqlalchemy.Engine, clock: Clock) -> t.Generator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(container: ExaminerContainer, clock: Clock) -> t.Callable[[User], dict[str, str]]:
    """Bearer headers for a user, signed by the container's JWT manager."""

    def headers_for(user: User) -> dict[str, str]:
        token = container.auth().jwt_manager().create_access_token(user.user_id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return headers_for
