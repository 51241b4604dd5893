"""Tests for examiner.storage.user module."""

from __future__ import annotations

import typing as t

import pydantic as p
import pytest
import sqlalchemy.exc
from sqlalchemy.orm import Session

from examiner.model import User, UserID, UserRole
from examiner.storage import user as user_storage


class TestGet(object):
    """Tests for user_storage.get()."""

    def test_get_by_id(self, db_session: Session, participant: User) -> None:
        with db_session.begin():
            result = user_storage.get(user_id=participant.user_id, session=db_session)

        assert result is not None
        assert result.email == "participant@example.com"
        assert result.role is UserRole.Participant

    def test_get_by_email_ignores_case(self, db_session: Session, participant: User) -> None:
        """Emails are stored lowercased and matched case-insensitively."""
        with db_session.begin():
            result = user_storage.get(email="Participant@EXAMPLE.com", session=db_session)

        assert result is not None
        assert result.user_id == participant.user_id

    def test_get_missing(self, db_session: Session) -> None:
        with db_session.begin():
            assert user_storage.get(user_id=UserID(), session=db_session) is None

    def test_requires_exactly_one_key(self, db_session: Session, participant: User) -> None:
        with pytest.raises(ValueError):
            user_storage.get(session=db_session)
        with pytest.raises(ValueError):
            user_storage.get(user_id=participant.user_id, email=participant.email, session=db_session)


class TestCreate(object):
    """Tests for user_storage.create()."""

    def test_password_is_hashed(self, db_session: Session) -> None:
        with db_session.begin():
            user = user_storage.create(
                email="New@Example.com",
                name="New",
                role=UserRole.Instructor,
                password=p.Secret("s3cret!"),
                session=db_session,
            )

        assert user.email == "new@example.com"
        assert user.password_hash is not None
        assert user.password_hash != "s3cret!"
        assert user_storage.verify_password(user, p.Secret("s3cret!"))
        assert not user_storage.verify_password(user, p.Secret("wrong"))

    def test_without_password_cannot_log_in(self, db_session: Session) -> None:
        with db_session.begin():
            user = user_storage.create(
                email="nopw@example.com", name="No PW", role=UserRole.Participant, session=db_session
            )

        assert user.password_hash is None
        assert not user_storage.verify_password(user, p.Secret(""))

    def test_duplicate_email(self, db_session: Session, participant: User) -> None:
        with pytest.raises(sqlalchemy.exc.IntegrityError):
            with db_session.begin():
                user_storage.create(
                    email=participant.email, name="Dup", role=UserRole.Participant, session=db_session
                )


class TestFindAndUpdate(object):
    """Tests for user_storage.find() and user_storage.update()."""

    def test_find_by_role(
        self, db_session: Session, instructor: User, participant: User, user_factory: t.Callable[..., User]
    ) -> None:
        other = user_factory(role=UserRole.Participant)

        with db_session.begin():
            participants = user_storage.find(role=UserRole.Participant, session=db_session)
            everyone = user_storage.find(session=db_session)

        assert {u.user_id for u in participants} == {participant.user_id, other.user_id}
        assert len(everyone) == 3

    def test_update_password(self, db_session: Session, participant: User) -> None:
        with db_session.begin():
            updated = user_storage.update(participant.user_id, password=p.Secret("changed"), session=db_session)

        assert user_storage.verify_password(updated, p.Secret("changed"))
        assert not user_storage.verify_password(updated, p.Secret("password123"))
        assert updated.name == participant.name

    def test_update_missing(self, db_session: Session) -> None:
        with pytest.raises(KeyError):
            with db_session.begin():
                user_storage.update(UserID(), name="Ghost", session=db_session)
