"""Authentication dependencies for FastAPI routes."""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from stagegate.core import di
from stagegate.model import User, UserRole
from stagegate.review.permission import has_permission, Permission
from stagegate.storage import Session
from stagegate.storage import user as user_storage

from .jwt import JWTManager, TokenData

# Security scheme for JWT bearer tokens
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
    jwt_manager: JWTManager = Depends(di.Provide["auth.jwt_manager"]),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuthContext:
    """Dependency to get the current authenticated user.

    The role comes from the database, not the token, so a role change takes
    effect immediately.

    Raises:
        HTTPException 401: If no token provided, the token is invalid, or the
            user no longer exists
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    token_data = jwt_manager.decode_token(credentials.credentials)
    if token_data is None:
        raise _unauthorized("Invalid or expired token")

    with session.begin():
        user = user_storage.get(token_data.user_id, session=session)
    if user is None:
        raise _unauthorized("User not found")

    return AuthContext(user=user, role=user.role, token_data=token_data)


def require_role(*allowed_roles: UserRole) -> t.Callable[..., AuthContext]:
    """Dependency factory to require specific roles.

    Usage:
        @router.get("/admin")
        def admin_route(auth: AuthContext = Depends(require_role(UserRole.Admin))):
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


def require_permission(permission: Permission) -> t.Callable[..., AuthContext]:
    """Dependency factory to require a gate-review permission."""

    def check_permission(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if not has_permission(auth.role, permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{auth.role.value}' lacks {permission.value}",
            )
        return auth

    return check_permission
