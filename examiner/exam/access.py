"""Admission control for assessments.

`validate_access` decides whether a participant may join an assessment. A
participant with a live session is always let back in; otherwise the
scheduling window and then the assessment's access mode are checked.
"""

from __future__ import annotations

import datetime
import logging

import examiner.storage.assessment
import examiner.storage.grant
import examiner.storage.session
import examiner.storage.user
from examiner.core import di, TimestampProvider
from examiner.model import AccessMode, Assessment, AssessmentID, BaseModel, ExamSession, GrantStatus, UserID
from examiner.storage import Session

from . import clock
from .errors import storage_errors

logger = logging.getLogger(__name__)


class Credential(BaseModel):
    """What a participant presents to get in; which field matters depends on the access mode"""

    access_code: str | None = None
    invitation_token: str | None = None


class AccessDecision(BaseModel):
    granted: bool
    reason: str | None = None
    assessment: Assessment | None = None
    session: ExamSession | None = None

    @property
    def resumed(self) -> bool:
        return self.granted and self.session is not None

    @classmethod
    def deny(cls, reason: str, assessment: Assessment | None = None) -> AccessDecision:
        return cls(granted=False, reason=reason, assessment=assessment)


@storage_errors
def validate_access(
    participant_id: UserID,
    assessment_id: AssessmentID,
    credential: Credential | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> AccessDecision:
    """Decide whether `participant_id` may join the assessment.

    Safe to repeat. The only write is the lazy expiry of an invitation found
    past its `expires_at`, which is committed even though access is denied.
    """
    with session.begin():
        return decide(participant_id, assessment_id, credential, session=session, utcnow=utcnow)


def decide(
    participant_id: UserID,
    assessment_id: AssessmentID,
    credential: Credential | None,
    *,
    session: Session,
    utcnow: TimestampProvider,
) -> AccessDecision:
    """`validate_access` within the caller's transaction"""
    credential = credential or Credential()
    now = utcnow()

    assessment = examiner.storage.assessment.get(assessment_id, session=session)
    if assessment is None or not assessment.is_published:
        return _denied("NOT_FOUND", participant_id, assessment_id)

    es = examiner.storage.session.get_for(participant_id=participant_id, assessment_id=assessment_id, session=session)
    if es is not None and not es.status.is_terminal:
        return AccessDecision(granted=True, assessment=assessment, session=es)

    match clock.window(assessment, now):
        case clock.Window.NotStarted:
            return _denied("NOT_STARTED", participant_id, assessment_id, assessment)
        case clock.Window.Ended:
            return _denied("ENDED", participant_id, assessment_id, assessment)
        case clock.Window.Open:
            pass

    match assessment.access_mode:
        case AccessMode.Open:
            pass

        case AccessMode.Code:
            if credential.access_code is None or credential.access_code != assessment.access_code:
                return _denied("INVALID_CODE", participant_id, assessment_id, assessment)

        case AccessMode.Invitation:
            reason = _check_invitation(
                participant_id, assessment, credential.invitation_token, session=session, now=now
            )
            if reason is not None:
                return _denied(reason, participant_id, assessment_id, assessment)

    return AccessDecision(granted=True, assessment=assessment, session=es)


def _check_invitation(
    participant_id: UserID,
    assessment: Assessment,
    token: str | None,
    *,
    session: Session,
    now: datetime.datetime,
) -> str | None:
    if not token:
        return "INVALID_INVITATION"
    grant = examiner.storage.grant.get(token=token, session=session)
    participant = examiner.storage.user.get(user_id=participant_id, session=session)
    if (
        grant is None
        or participant is None
        or grant.assessment_id != assessment.assessment_id
        or grant.email.lower() != participant.email.lower()
        or grant.status is not GrantStatus.Accepted
    ):
        return "INVALID_INVITATION"

    if now >= grant.expires_at:
        if examiner.storage.grant.transition(
            grant.grant_id, from_status=GrantStatus.Accepted, to_status=GrantStatus.Expired, session=session
        ):
            logger.info("expired invitation on use", extra={"grant_id": grant.grant_id})
        return "INVITATION_EXPIRED"
    return None


def _denied(
    reason: str, participant_id: UserID, assessment_id: AssessmentID, assessment: Assessment | None = None
) -> AccessDecision:
    logger.debug(
        "access denied",
        extra={"participant_id": participant_id, "assessment_id": assessment_id, "reason": reason},
    )
    return AccessDecision.deny(reason, assessment)
