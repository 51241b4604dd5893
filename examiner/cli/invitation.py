"""CLI commands for invitations."""

from __future__ import annotations

import datetime

from sqlalchemy.orm import Session

import examiner.lib.cli as click
from examiner import exam
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings
from examiner.model import AssessmentID, UserRole
from examiner.storage import user as user_storage


@click.group("invitation")
def invitation():
    """Issue and expire invitations."""
    ...


@invitation.command("issue")
@click.argument("email")
@click.option("--issuer", "-i", "issuer_email", required=True, help="Email of the issuing instructor")
@click.option("--assessment", "-a", "assessment_id", type=click.KeyParamType(AssessmentID))
@click.option("--ttl", "ttl_hours", type=click.IntRange(min=1), help="Hours until the invitation expires")
@di.inject
def invitation_issue(
    email: str,
    issuer_email: str,
    assessment_id: AssessmentID | None,
    ttl_hours: int | None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    policy: ExamSettings = di.Provide["exam"],
) -> None:
    """Invite EMAIL, optionally to a single assessment."""
    with session.begin():
        issuer = user_storage.get(email=issuer_email, session=session)
    if issuer is None or issuer.role is not UserRole.Instructor:
        click.echo(f"Error: Instructor '{issuer_email}' not found.", err=True)
        raise SystemExit(1)

    ttl = datetime.timedelta(hours=ttl_hours) if ttl_hours else None
    grant = exam.issue_invitation(
        issuer.user_id, email, assessment_id, ttl=ttl, session=session, utcnow=utcnow, policy=policy
    )
    click.echo(f"Issued invitation: {grant.grant_id}")
    click.echo(f"  Email: {grant.email}")
    click.echo(f"  Expires: {grant.expires_at.isoformat()}")
    click.echo(f"  Token: {grant.token}")


@invitation.command("expire")
@di.inject
def invitation_expire(
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> None:
    """Expire every outstanding invitation past its expiry time."""
    count = exam.expire_stale_grants(session=session, utcnow=utcnow)
    click.echo(f"Expired {count} invitation(s)")
