from __future__ import annotations

import datetime
import secrets

import sqlalchemy as sqla

from examiner.core import di
from examiner.model import AccessGrant, AssessmentID, GrantID, GrantStatus, UserID

from . import Session
from .table import access_grants


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def get(
    *,
    grant_id: GrantID | None = None,
    token: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> AccessGrant | None:
    """Get a grant by ID or token.

    Exactly one of grant_id or token must be provided.
    """
    if grant_id is None and token is None:
        raise ValueError("Either grant_id or token must be provided")
    if grant_id is not None and token is not None:
        raise ValueError("Only one of grant_id or token should be provided")

    if grant_id is not None:
        stmt = sqla.select(access_grants.__table__).where(access_grants.grant_id == grant_id)
    else:
        stmt = sqla.select(access_grants.__table__).where(access_grants.token == token)
    row = session.execute(stmt).mappings().one_or_none()
    return AccessGrant(**row) if row else None


def find(
    *,
    assessment_id: AssessmentID | None = None,
    email: str | None = None,
    status: GrantStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[AccessGrant, ...]:
    stmt = sqla.select(access_grants.__table__).order_by(access_grants.expires_at)
    if assessment_id is not None:
        stmt = stmt.where(access_grants.assessment_id == assessment_id)
    if email is not None:
        stmt = stmt.where(sqla.func.lower(access_grants.email) == email.lower())
    if status is not None:
        stmt = stmt.where(access_grants.status == status)
    rows = session.execute(stmt).mappings().all()
    return tuple(AccessGrant(**row) for row in rows)


def create(
    *,
    email: str,
    issued_by: UserID,
    expires_at: datetime.datetime,
    assessment_id: AssessmentID | None = None,
    token: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> AccessGrant:
    grant_id = GrantID()
    stmt = sqla.insert(access_grants).values(
        grant_id=grant_id,
        token=token or generate_token(),
        email=email,
        issued_by=issued_by,
        expires_at=expires_at,
        assessment_id=assessment_id,
    )
    session.execute(stmt)
    session.flush()
    result = get(grant_id=grant_id, session=session)
    assert result is not None
    return result


def transition(
    grant_id: GrantID,
    *,
    from_status: GrantStatus,
    to_status: GrantStatus,
    accept_time: datetime.datetime | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Move a grant between statuses if, and only if, it is still in `from_status`.

    Returns:
        True if this call made the transition
    """
    values: dict[str, object] = {"status": to_status}
    if accept_time is not None:
        values["accept_time"] = accept_time
    stmt = (
        sqla
        .update(access_grants)
        .where(access_grants.grant_id == grant_id, access_grants.status == from_status)
        .values(**values)
    )
    result = session.execute(stmt)
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def expire_stale(
    *,
    now: datetime.datetime,
    session: Session = di.Provide["storage.persistent.session"],
) -> int:
    """Expire every pending or accepted grant past its `expires_at`; returns the number expired"""
    stmt = (
        sqla
        .update(access_grants)
        .where(
            access_grants.status.in_([GrantStatus.Pending, GrantStatus.Accepted]),
            access_grants.expires_at <= now,
        )
        .values(status=GrantStatus.Expired)
    )
    result = session.execute(stmt)
    session.flush()
    return result.rowcount  # pyright: ignore[reportAttributeAccessIssue]
