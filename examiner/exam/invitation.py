"""Invitation grants: issuing, accepting and expiring them.

A grant moves pending -> accepted exactly once, or to expired once past its
`expires_at`. Delivery of the token to the invitee happens elsewhere.
"""

from __future__ import annotations

import datetime
import logging

import examiner.storage.assessment
import examiner.storage.grant
import examiner.storage.user
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings
from examiner.model import AccessGrant, AssessmentID, GrantStatus, UserID
from examiner.storage import Session

from .errors import AccessDenied, InvitationStateError, NotFound, storage_errors

logger = logging.getLogger(__name__)


@storage_errors
def issue_invitation(
    issuer_id: UserID,
    email: str,
    assessment_id: AssessmentID | None = None,
    *,
    ttl: datetime.timedelta | None = None,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    policy: ExamSettings = di.Provide["exam"],
) -> AccessGrant:
    """Create a pending grant for `email`, bound to an assessment the issuer owns.

    Raises:
        NotFound: NOT_FOUND if the assessment does not exist
        AccessDenied: ACCESS_DENIED unless the issuer owns the assessment
    """
    ttl = ttl or datetime.timedelta(hours=policy.invitation_ttl_hours)
    with session.begin():
        if assessment_id is not None:
            assessment = examiner.storage.assessment.get(assessment_id, session=session)
            if assessment is None:
                raise NotFound("NOT_FOUND", "Assessment not found")
            if assessment.owner_id != issuer_id:
                raise AccessDenied("ACCESS_DENIED", "Only the assessment owner may issue invitations")
        grant = examiner.storage.grant.create(
            email=email.lower(),
            issued_by=issuer_id,
            assessment_id=assessment_id,
            expires_at=utcnow() + ttl,
            session=session,
        )

    logger.info(
        "issued invitation",
        extra={"grant_id": grant.grant_id, "assessment_id": assessment_id, "expires_at": grant.expires_at},
    )
    return grant


@storage_errors
def accept_invitation(
    participant_id: UserID,
    token: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> AccessGrant:
    """Accept a pending grant addressed to the participant.

    Raises:
        AccessDenied: INVALID_INVITATION if the token is unknown or addressed to someone else;
            INVITATION_EXPIRED if it is past `expires_at` (the grant is expired as a side effect)
        InvitationStateError: INVITATION_INVALID_STATUS if it is not pending
    """
    expired = False
    with session.begin():
        grant = examiner.storage.grant.get(token=token, session=session)
        participant = examiner.storage.user.get(user_id=participant_id, session=session)
        if grant is None or participant is None or grant.email.lower() != participant.email.lower():
            raise AccessDenied("INVALID_INVITATION", "Invitation not found")
        if grant.status is not GrantStatus.Pending:
            raise InvitationStateError("INVITATION_INVALID_STATUS", f"Invitation is already {grant.status.value}")

        now = utcnow()
        if now >= grant.expires_at:
            expired = examiner.storage.grant.transition(
                grant.grant_id, from_status=GrantStatus.Pending, to_status=GrantStatus.Expired, session=session
            )
        elif not examiner.storage.grant.transition(
            grant.grant_id,
            from_status=GrantStatus.Pending,
            to_status=GrantStatus.Accepted,
            accept_time=now,
            session=session,
        ):
            raise InvitationStateError("INVITATION_INVALID_STATUS", "Invitation was accepted concurrently")

        updated = examiner.storage.grant.get(grant_id=grant.grant_id, session=session)
        assert updated is not None

    if updated.status is GrantStatus.Expired:
        if expired:
            logger.info("expired invitation on acceptance", extra={"grant_id": grant.grant_id})
        raise AccessDenied("INVITATION_EXPIRED", "Invitation has expired")

    logger.info("accepted invitation", extra={"grant_id": grant.grant_id, "participant_id": participant_id})
    return updated


@storage_errors
def expire_stale_grants(
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> int:
    """Expire every pending or accepted grant past its `expires_at`; returns how many were expired"""
    with session.begin():
        count = examiner.storage.grant.expire_stale(now=utcnow(), session=session)
    logger.info("expired stale invitations", extra={"count": count})
    return count
