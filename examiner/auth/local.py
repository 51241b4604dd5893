"""Local authentication against bcrypt password hashes in the users table."""

from __future__ import annotations

import pydantic as p
from sqlalchemy.orm import Session

import examiner.storage.user
from examiner.core import di
from examiner.model import User, UserID

from .provider import AuthProvider, AuthResult


class LocalAuthProvider(AuthProvider):
    """Authenticates users whose password hashes are stored locally.

    The caller owns the session's transaction.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def authenticate(self, email: str, password: p.Secret[str]) -> AuthResult:
        user = examiner.storage.user.get(email=email, session=self._session)
        if user is None or not examiner.storage.user.verify_password(user, password):
            return AuthResult(success=False, error="Invalid email or password")
        return AuthResult(success=True, user=user)

    def get_user(self, user_id: UserID) -> User | None:
        return examiner.storage.user.get(user_id=user_id, session=self._session)


def get_user(
    user_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    return LocalAuthProvider(session).get_user(user_id)


def authenticate(
    email: str,
    password: p.Secret[str],
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> AuthResult:
    return LocalAuthProvider(session).authenticate(email, password)
