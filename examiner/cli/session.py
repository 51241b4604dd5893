"""CLI commands for maintaining exam sessions."""

from __future__ import annotations

from sqlalchemy.orm import Session

import examiner.lib.cli as click
from examiner import exam
from examiner.core import di, TimestampProvider
from examiner.model import AssessmentID, SessionStatus
from examiner.storage import assessment as assessment_storage


@click.group("session")
def session():
    """Maintain exam sessions."""
    ...


@session.command("sweep")
@click.argument("assessment_id", required=False, type=click.KeyParamType(AssessmentID))
@di.inject
def session_sweep(
    assessment_id: AssessmentID | None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> None:
    """Complete sessions that have run out of time.

    ASSESSMENT_ID limits the sweep to one assessment; by default every
    published assessment is swept.
    """
    if assessment_id is not None:
        targets = [assessment_id]
    else:
        with session.begin():
            targets = [a.assessment_id for a in assessment_storage.find(is_published=True, session=session)]

    total = 0
    for target in targets:
        completed = exam.sweep_expired(target, session=session, utcnow=utcnow)
        if completed:
            click.echo(f"{target}: completed {completed} expired session(s)")
        total += completed
    click.echo(f"Swept {len(targets)} assessment(s), completed {total} session(s)")


@session.command("expiring")
@click.argument("assessment_id", type=click.KeyParamType(AssessmentID))
@click.option("--within", "-w", "within_minutes", type=click.IntRange(min=1), default=5, help="minutes")
@di.inject
def session_expiring(
    assessment_id: AssessmentID,
    within_minutes: int,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> None:
    """List in-progress sessions about to run out of time."""
    expiring = exam.find_expiring(assessment_id, within_minutes, session=session, utcnow=utcnow)
    if not expiring:
        click.echo(f"No {SessionStatus.InProgress.value} sessions expire within {within_minutes} minute(s).")
        return

    click.echo(f"{'Session':<32} {'Participant':<32} {'Remaining':<10}")
    click.echo("-" * 76)
    for es in expiring:
        remaining = exam.format_remaining(es.remaining_seconds)
        click.echo(f"{str(es.session_id):<32} {str(es.participant_id):<32} {remaining:<10}")
