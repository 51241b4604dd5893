"""Defining assessments and their question banks.

Everything here happens before publication; a published assessment is
treated as immutable by the session core.
"""

from __future__ import annotations

import datetime
import decimal
import logging
import typing as t

import annotated_types as ant
import pydantic as p

import examiner.storage.assessment
import examiner.storage.question
from examiner.core import di
from examiner.core.config import ExamSettings
from examiner.model import AccessMode, Assessment, AssessmentID, BaseModel, Question, QuestionKind, UserID
from examiner.storage import Session

from .errors import AccessDenied, NotFound, storage_errors, ValidationFailure
from .grading import SingleSelectContent, SingleSelectKey

logger = logging.getLogger(__name__)


class QuestionDefinition(BaseModel):
    kind: QuestionKind
    content: dict[str, t.Any]
    answer_key: dict[str, t.Any] | None = None
    marks: t.Annotated[decimal.Decimal, ant.Gt(0)]


class AssessmentDefinition(BaseModel):
    """An assessment as written in a definition file"""

    title: str
    description: str | None = None
    start_time: p.AwareDatetime
    end_time: p.AwareDatetime
    duration_minutes: int
    access_mode: AccessMode = AccessMode.Open
    access_code: str | None = None
    max_violations: t.Annotated[int, ant.Ge(1)] | None = None
    require_proctor_signal: bool = False
    questions: list[QuestionDefinition] = p.Field(default_factory=list)


def check_schedule(
    start_time: datetime.datetime, end_time: datetime.datetime, duration_minutes: int, policy: ExamSettings
) -> None:
    if start_time >= end_time:
        raise ValidationFailure("INVALID_SCHEDULE", "start_time must be before end_time")
    if not policy.min_duration_minutes <= duration_minutes <= policy.max_duration_minutes:
        raise ValidationFailure(
            "INVALID_SCHEDULE",
            f"duration must be between {policy.min_duration_minutes} and {policy.max_duration_minutes} minutes",
        )


def check_question(definition: QuestionDefinition) -> None:
    if definition.kind is not QuestionKind.SingleSelect:
        return
    try:
        content = SingleSelectContent.model_validate(definition.content)
        key = SingleSelectKey.model_validate(definition.answer_key or {})
    except p.ValidationError as e:
        raise ValidationFailure("INVALID_QUESTION", str(e)) from e
    if key.correct_option >= len(content.options):
        raise ValidationFailure("INVALID_QUESTION", "correct_option is not one of the options")


@storage_errors
def create_assessment(
    owner_id: UserID,
    definition: AssessmentDefinition,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    policy: ExamSettings = di.Provide["exam"],
) -> tuple[Assessment, tuple[Question, ...]]:
    """Create an unpublished assessment with its questions, in order"""
    check_schedule(definition.start_time, definition.end_time, definition.duration_minutes, policy)
    if definition.access_mode is AccessMode.Code and not definition.access_code:
        raise ValidationFailure("INVALID_ACCESS", "code access requires an access_code")
    for qd in definition.questions:
        check_question(qd)

    with session.begin():
        assessment = examiner.storage.assessment.create(
            owner_id=owner_id,
            title=definition.title,
            description=definition.description,
            start_time=definition.start_time,
            end_time=definition.end_time,
            duration_minutes=definition.duration_minutes,
            access_mode=definition.access_mode,
            access_code=definition.access_code,
            max_violations=definition.max_violations,
            require_proctor_signal=definition.require_proctor_signal,
            session=session,
        )
        questions = tuple(
            examiner.storage.question.create(
                assessment_id=assessment.assessment_id,
                kind=qd.kind,
                position=position,
                content=qd.content,
                answer_key=qd.answer_key,
                marks=qd.marks,
                session=session,
            )
            for position, qd in enumerate(definition.questions, start=1)
        )
        examiner.storage.assessment.refresh_total_marks(assessment.assessment_id, session=session)
        created = examiner.storage.assessment.get(assessment.assessment_id, session=session)
        assert created is not None

    logger.info(
        "created assessment",
        extra={"assessment_id": created.assessment_id, "questions": len(questions), "total_marks": created.total_marks},
    )
    return created, questions


@storage_errors
def publish_assessment(
    owner_id: UserID,
    assessment_id: AssessmentID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assessment:
    with session.begin():
        assessment = examiner.storage.assessment.get(assessment_id, session=session)
        if assessment is None:
            raise NotFound("NOT_FOUND", "Assessment not found")
        if assessment.owner_id != owner_id:
            raise AccessDenied("ACCESS_DENIED", "Only the assessment owner may publish it")
        if assessment.is_published:
            return assessment
        if examiner.storage.question.count(assessment_id, session=session) == 0:
            raise ValidationFailure("EMPTY_ASSESSMENT", "An assessment needs questions before it is published")
        examiner.storage.assessment.update(assessment_id, is_published=True, session=session)
        published = examiner.storage.assessment.get(assessment_id, session=session)
        assert published is not None

    logger.info("published assessment", extra={"assessment_id": assessment_id})
    return published
