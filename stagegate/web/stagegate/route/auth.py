"""Authentication routes."""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from stagegate.auth import local as local_auth
from stagegate.auth.jwt import JWTManager
from stagegate.auth.middleware import AuthContext, get_current_user
from stagegate.core import di
from stagegate.storage import Session

from ..view.auth import LoginRequest, LoginResponse, TokenResponse, UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", operation_id="login")
@di.inject
def login(
    request: LoginRequest,
    session: Session = Depends(di.Manage["storage.persistent.session"]),
    jwt_manager: JWTManager = Depends(di.Provide["auth.jwt_manager"]),
) -> LoginResponse:
    """Authenticate a user and return access token."""
    with session.begin():
        user = local_auth.authenticate(request.email, request.password, session=session)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    expires_delta = datetime.timedelta(minutes=jwt_manager.access_token_expire_minutes)
    expires_at = datetime.datetime.now(datetime.UTC) + expires_delta
    access_token = jwt_manager.create_access_token(user.user_id, user.role, expires_delta=expires_delta)

    return LoginResponse(
        user=UserResponse(
            user_id=user.user_id,
            email=user.email,
            name=user.name,
            role=user.role,
            department=user.department,
        ),
        token=TokenResponse(access_token=access_token, expires_at=expires_at),
    )


@router.get("/me", operation_id="get_current_user")
def me(auth: AuthContext = Depends(get_current_user)) -> UserResponse:
    return UserResponse(
        user_id=auth.user.user_id,
        email=auth.user.email,
        name=auth.user.name,
        role=auth.user.role,
        department=auth.user.department,
    )
