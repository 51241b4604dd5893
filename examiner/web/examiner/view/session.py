"""View models for admission and session endpoints."""

from __future__ import annotations

import datetime
import decimal

from examiner.model import AssessmentID, BaseModel, ExamSession, SessionID, SessionStatus, UserID


class AccessRequest(BaseModel):
    """Credentials presented to join an assessment; which one is needed depends on its access mode"""

    access_code: str | None = None
    invitation_token: str | None = None


class AccessDecisionResponse(BaseModel):
    granted: bool
    reason: str | None = None
    assessment_id: AssessmentID
    session_id: SessionID | None = None


class SessionResponse(BaseModel):
    session_id: SessionID
    assessment_id: AssessmentID
    participant_id: UserID
    status: SessionStatus
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    total_score: decimal.Decimal | None = None
    violations_count: int

    @classmethod
    def of(cls, es: ExamSession) -> SessionResponse:
        return cls(
            session_id=es.session_id,
            assessment_id=es.assessment_id,
            participant_id=es.participant_id,
            status=es.status,
            start_time=es.start_time,
            end_time=es.end_time,
            total_score=es.total_score,
            violations_count=es.violations_count,
        )


class TerminateRequest(BaseModel):
    reason: str | None = None


class SweepResponse(BaseModel):
    assessment_id: AssessmentID
    completed: int
