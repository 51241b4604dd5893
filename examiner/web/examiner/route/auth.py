"""Authentication routes."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from examiner.auth import AuthContext, get_current_user, jwt
from examiner.auth import local as local_auth
from examiner.core import di, TimestampProvider

from ..view.auth import LoginRequest, LoginResponse, TokenResponse, UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", operation_id="login")
@di.inject
def login(
    request: LoginRequest,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    expire_minutes: int = Depends(di.Provide["config.web.examiner.auth.access_token_expire_minutes"]),
    utcnow: TimestampProvider = Depends(di.Provide["utcnow"]),
) -> LoginResponse:
    """Authenticate a user and return access token."""
    with session.begin():
        result = local_auth.authenticate(request.email, request.password, session=session)

    if not result.success or result.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.error or "Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    expires_delta = datetime.timedelta(minutes=expire_minutes)
    access_token = jwt.create_access_token(
        user_id=result.user.user_id,
        role=result.user.role,
        expires_delta=expires_delta,
    )

    return LoginResponse(
        user=UserResponse(
            user_id=result.user.user_id,
            email=result.user.email,
            name=result.user.name,
            role=result.user.role,
        ),
        token=TokenResponse(
            access_token=access_token,
            expires_at=utcnow() + expires_delta,
        ),
    )


@router.get("/me", operation_id="get_current_user")
def me(auth: AuthContext = Depends(get_current_user)) -> UserResponse:
    """Get the authenticated user."""
    return UserResponse(
        user_id=auth.user.user_id,
        email=auth.user.email,
        name=auth.user.name,
        role=auth.role,
    )
