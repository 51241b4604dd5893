"""View models for invitation endpoints."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
from pydantic import EmailStr

from examiner.model import AccessGrant, AssessmentID, BaseModel, GrantID, GrantStatus


class IssueInvitationRequest(BaseModel):
    email: EmailStr
    assessment_id: AssessmentID | None = None
    ttl_hours: t.Annotated[int, ant.Ge(1)] | None = None


class AcceptInvitationRequest(BaseModel):
    token: str


class InvitationResponse(BaseModel):
    grant_id: GrantID
    email: EmailStr
    assessment_id: AssessmentID | None
    status: GrantStatus
    expires_at: datetime.datetime
    accept_time: datetime.datetime | None = None

    @classmethod
    def of(cls, grant: AccessGrant) -> InvitationResponse:
        return cls(
            grant_id=grant.grant_id,
            email=grant.email,
            assessment_id=grant.assessment_id,
            status=grant.status,
            expires_at=grant.expires_at,
            accept_time=grant.accept_time,
        )


class IssuedInvitationResponse(InvitationResponse):
    """Only the issuer sees the token, for delivery to the invitee"""

    token: str

    @classmethod
    def of(cls, grant: AccessGrant) -> IssuedInvitationResponse:
        return cls(
            grant_id=grant.grant_id,
            email=grant.email,
            assessment_id=grant.assessment_id,
            status=grant.status,
            expires_at=grant.expires_at,
            accept_time=grant.accept_time,
            token=grant.token,
        )
