"""CLI commands for authoring assessments from definition files."""

from __future__ import annotations

import pathlib

import pydantic as p
import yaml
from sqlalchemy.orm import Session

import examiner.lib.cli as click
from examiner.core import di
from examiner.core.config import ExamSettings
from examiner.exam import authoring
from examiner.model import AssessmentID, User, UserRole
from examiner.storage import assessment as assessment_storage
from examiner.storage import user as user_storage


@click.group("assessment")
def assessment():
    """Author and publish assessments."""
    ...


def _instructor(email: str, *, session: Session) -> User:
    with session.begin():
        owner = user_storage.get(email=email, session=session)
    if owner is None or owner.role is not UserRole.Instructor:
        click.echo(f"Error: Instructor '{email}' not found.", err=True)
        raise SystemExit(1)
    return owner


@assessment.command("load")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=pathlib.Path))
@click.option("--owner", "-o", "owner_email", required=True, help="Email of the owning instructor")
@click.option("--publish", is_flag=True, default=False, help="Publish immediately after loading")
@di.inject
def assessment_load(
    path: pathlib.Path,
    owner_email: str,
    publish: bool,
    session: Session = di.Provide["storage.persistent.session"],
    policy: ExamSettings = di.Provide["exam"],
) -> None:
    """Create an assessment from the YAML definition at PATH."""
    owner = _instructor(owner_email, session=session)
    with path.open() as f:
        data = yaml.safe_load(f)

    try:
        definition = authoring.AssessmentDefinition.model_validate(data)
    except p.ValidationError as e:
        click.echo(f"Error: {path} is not a valid assessment definition:\n{e}", err=True)
        raise SystemExit(1) from e

    created, questions = authoring.create_assessment(owner.user_id, definition, session=session, policy=policy)
    if publish:
        created = authoring.publish_assessment(owner.user_id, created.assessment_id, session=session)

    click.echo(f"Created assessment: {created.title}")
    click.echo(f"  ID: {created.assessment_id}")
    click.echo(f"  Window: {created.start_time.isoformat()} - {created.end_time.isoformat()}")
    click.echo(f"  Duration: {created.duration_minutes} minutes")
    click.echo(f"  Questions: {len(questions)} ({created.total_marks} marks)")
    click.echo(f"  Published: {'yes' if created.is_published else 'no'}")


@assessment.command("publish")
@click.argument("assessment_id", type=click.KeyParamType(AssessmentID))
@click.option("--owner", "-o", "owner_email", required=True, help="Email of the owning instructor")
@di.inject
def assessment_publish(
    assessment_id: AssessmentID,
    owner_email: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Publish an assessment, opening it to participants."""
    owner = _instructor(owner_email, session=session)
    published = authoring.publish_assessment(owner.user_id, assessment_id, session=session)
    click.echo(f"Published {published.title} ({published.assessment_id})")


@assessment.command("list")
@click.option("--owner", "-o", "owner_email", help="Only assessments owned by this instructor")
@di.inject
def assessment_list(
    owner_email: str | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """List assessments."""
    owner_id = _instructor(owner_email, session=session).user_id if owner_email else None
    with session.begin():
        assessments = assessment_storage.find(owner_id=owner_id, session=session)

    if not assessments:
        click.echo("No assessments found.")
        return

    click.echo(f"{'ID':<30} {'Title':<30} {'Mode':<12} {'Published':<9}")
    click.echo("-" * 84)
    for a in assessments:
        published = "yes" if a.is_published else "no"
        click.echo(f"{str(a.assessment_id):<30} {a.title:<30} {a.access_mode.value:<12} {published:<9}")
