"""Authentication dependencies for FastAPI routes."""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from examiner.core import di
from examiner.model import User, UserRole

from . import jwt as jwt_auth
from . import local as local_auth
from .jwt import TokenData

bearer_scheme = HTTPBearer(auto_error=False)


class AuthContext(t.NamedTuple):
    """Current authentication context."""

    user: User
    role: UserRole
    token_data: TokenData


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@di.inject
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuthContext:
    """Dependency to get the current authenticated user.

    Raises:
        HTTPException 401: If no token provided, the token is invalid, or its user is gone
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    token_data = jwt_auth.decode_token(credentials.credentials)
    if token_data is None:
        raise _unauthorized("Invalid or expired token")

    with session.begin():
        user = local_auth.get_user(token_data.user_id, session=session)
    if user is None:
        raise _unauthorized("User not found")
    if user.role is not token_data.role:
        # the role changed since the token was issued
        raise _unauthorized("Invalid or expired token")

    return AuthContext(user=user, role=user.role, token_data=token_data)


def require_role(
    *allowed_roles: UserRole,
) -> t.Callable[..., AuthContext]:
    """Dependency factory to require specific roles.

    Usage:
        @router.get("/monitor")
        def monitor(auth: AuthContext = Depends(require_role(UserRole.Instructor))):
            ...
    """

    def check_role(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{auth.role.value}' not authorized for this resource",
            )
        return auth

    return check_role


require_instructor = require_role(UserRole.Instructor)
require_participant = require_role(UserRole.Participant)
