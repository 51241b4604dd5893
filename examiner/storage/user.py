from __future__ import annotations

import typing as t

import bcrypt
import pydantic as p
import sqlalchemy as sqla

from examiner.core import di
from examiner.lib import NotSet
from examiner.model import User, UserID, UserRole

from . import Session
from .table import users


def hash_password(password: p.Secret[str]) -> str:
    return bcrypt.hashpw(password.get_secret_value().encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def get(
    *,
    user_id: UserID | None = None,
    email: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """Get a user by ID or email.

    Exactly one of user_id or email must be provided. Emails are matched
    case-insensitively.
    """
    if user_id is None and email is None:
        raise ValueError("Either user_id or email must be provided")
    if user_id is not None and email is not None:
        raise ValueError("Only one of user_id or email should be provided")

    if user_id is not None:
        stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    else:
        assert email is not None
        stmt = sqla.select(users.__table__).where(sqla.func.lower(users.email) == email.lower())

    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def find(
    *,
    role: UserRole | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    stmt = sqla.select(users.__table__).order_by(users.email)
    if role is not None:
        stmt = stmt.where(users.role == role)
    rows = session.execute(stmt).mappings().all()
    return tuple(User(**row) for row in rows)


def create(
    *,
    email: str,
    name: str,
    role: UserRole,
    password: p.Secret[str] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Create a new user.

    Password is hashed internally using bcrypt; a user without one cannot log in.
    """
    user = users(
        user_id=UserID(),
        email=email.lower(),
        name=name,
        role=role,
        password_hash=hash_password(password) if password is not None else None,
    )
    session.add(user)
    session.flush()
    result = get(user_id=user.user_id, session=session)
    assert result is not None
    return result


def update(
    user_id: UserID,
    *,
    name: str | NotSet = NotSet(),
    password: p.Secret[str] | None | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Update a user.

    Raises:
        KeyError: If user_id does not correspond to a user
    """
    values: dict[str, t.Any] = {}
    if not isinstance(name, NotSet):
        values["name"] = name
    if not isinstance(password, NotSet):
        values["password_hash"] = hash_password(password) if password is not None else None

    if values:
        stmt = sqla.update(users).where(users.user_id == user_id).values(**values)
        result = session.execute(stmt)
        if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
            raise KeyError(f"User {user_id} not found")
        session.flush()

    user = get(user_id=user_id, session=session)
    if user is None:
        raise KeyError(f"User {user_id} not found")
    return user


def verify_password(user: User, password: p.Secret[str]) -> bool:
    if user.password_hash is None:
        return False
    return bcrypt.checkpw(password.get_secret_value().encode("utf-8"), user.password_hash.encode("utf-8"))
