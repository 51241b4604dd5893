"""Invitation routes."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from examiner import exam
from examiner.auth import AuthContext, require_instructor, require_participant
from examiner.core import di, TimestampProvider
from examiner.core.config import ExamSettings

from ..view.invitation import AcceptInvitationRequest, InvitationResponse, IssuedInvitationResponse, \
    IssueInvitationRequest

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


@router.post("", operation_id="issue_invitation", status_code=status.HTTP_201_CREATED)
@di.inject
def issue_invitation(
    request: IssueInvitationRequest,
    auth: AuthContext = Depends(require_instructor),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
    policy: ExamSettings = Depends(di.Provide["exam"]),
) -> IssuedInvitationResponse:
    """Invite a participant by email, optionally to a single assessment."""
    ttl = datetime.timedelta(hours=request.ttl_hours) if request.ttl_hours else None
    grant = exam.issue_invitation(
        auth.user.user_id,
        request.email,
        request.assessment_id,
        ttl=ttl,
        session=session,
        utcnow=utcnow,
        policy=policy,
    )
    return IssuedInvitationResponse.of(grant)


@router.post("/accept", operation_id="accept_invitation")
@di.inject
def accept_invitation(
    request: AcceptInvitationRequest,
    auth: AuthContext = Depends(require_participant),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> InvitationResponse:
    """Accept an invitation addressed to the authenticated participant."""
    grant = exam.accept_invitation(auth.user.user_id, request.token, session=session, utcnow=utcnow)
    return InvitationResponse.of(grant)
