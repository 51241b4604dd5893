"""View models for the examiner web application."""

__all__ = [
    # Auth views
    "LoginRequest",
    "LoginResponse",
    "TokenResponse",
    "UserResponse",
    # Session views
    "AccessDecisionResponse",
    "AccessRequest",
    "SessionResponse",
    "SweepResponse",
    "TerminateRequest",
    # Answer views
    "ReviewedAnswerResponse",
    "ReviewRequest",
    "SubmitAnswerRequest",
    "SubmittedAnswerResponse",
    # Flag views
    "ClearFlagsResponse",
    "FlagListResponse",
    "FlagRequest",
    "FlagResponse",
    # Invitation views
    "AcceptInvitationRequest",
    "InvitationResponse",
    "IssuedInvitationResponse",
    "IssueInvitationRequest",
]

from .answer import ReviewedAnswerResponse, ReviewRequest, SubmitAnswerRequest, SubmittedAnswerResponse
from .auth import LoginRequest, LoginResponse, TokenResponse, UserResponse
from .flag import ClearFlagsResponse, FlagListResponse, FlagRequest, FlagResponse
from .invitation import AcceptInvitationRequest, InvitationResponse, IssuedInvitationResponse, IssueInvitationRequest
from .session import AccessDecisionResponse, AccessRequest, SessionResponse, SweepResponse, TerminateRequest
