"""Local authentication using bcrypt password hashing."""

from __future__ import annotations

import bcrypt

from stagegate.core import di
from stagegate.model import User
from stagegate.storage import Session
from stagegate.storage import user as user_storage


def verify_password(user: User, password: str) -> bool:
    if user.password_hash is None:
        return False
    return bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8"))


def authenticate(
    email: str,
    password: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """The user with this email and password, or None. Call inside a transaction."""
    user = user_storage.get(email=email, session=session)
    if user is None or not verify_password(user, password):
        return None
    return user
