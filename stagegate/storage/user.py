from __future__ import annotations

import typing as t

import bcrypt
import pydantic as p
import sqlalchemy as sqla

from stagegate.core import di
from stagegate.lib import NotSet
from stagegate.model import User, UserID, UserRole

from . import Session
from .table import users


def hash_password(password: p.Secret[str]) -> str:
    return bcrypt.hashpw(password.get_secret_value().encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def get(
    user_id: UserID | None = None,
    *,
    email: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User | None:
    """Get a user by ID or email.

    Exactly one of user_id or email must be provided.
    """
    if user_id is None and email is None:
        raise ValueError("Either user_id or email must be provided")
    if user_id is not None and email is not None:
        raise ValueError("Only one of user_id or email should be provided")

    if user_id is not None:
        stmt = sqla.select(users.__table__).where(users.user_id == user_id)
    else:
        stmt = sqla.select(users.__table__).where(users.email == email)

    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def find(
    *,
    user_ids: t.Iterable[UserID] | None = None,
    roles: t.Iterable[UserRole] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    """Find users matching criteria, ordered by name."""
    stmt = sqla.select(users.__table__)
    if user_ids is not None:
        stmt = stmt.where(users.user_id.in_(list(user_ids)))
    if roles is not None:
        stmt = stmt.where(users.role.in_(list(roles)))
    rows = session.execute(stmt.order_by(users.name)).mappings().all()
    return tuple(User(**row) for row in rows)


def create(
    *,
    email: str,
    name: str,
    role: UserRole,
    department: str | None = None,
    password: p.Secret[str] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Create a new user.

    Password, when given, is hashed internally using bcrypt.
    """
    user_id = UserID()
    stmt = sqla.insert(users).values(
        user_id=user_id,
        email=email,
        name=name,
        role=role,
        department=department,
        password_hash=hash_password(password) if password is not None else None,
    )
    session.execute(stmt)
    session.flush()
    return get(user_id, session=session)  # type: ignore[return-value]


def update(
    user_id: UserID,
    *,
    name: str | NotSet = NotSet(),
    role: UserRole | NotSet = NotSet(),
    department: str | None | NotSet = NotSet(),
    password: p.Secret[str] | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> User:
    """Update a user.

    Raises:
        KeyError: If user_id does not correspond to a user
    """
    values: dict[str, t.Any] = {}
    if not isinstance(name, NotSet):
        values["name"] = name
    if not isinstance(role, NotSet):
        values["role"] = role
    if not isinstance(department, NotSet):
        values["department"] = department
    if not isinstance(password, NotSet):
        values["password_hash"] = hash_password(password)

    if not values:
        # No-op update to verify user exists
        values["user_id"] = user_id

    result = session.execute(sqla.update(users).where(users.user_id == user_id).values(**values))
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"User {user_id} not found")

    session.flush()
    return get(user_id, session=session)  # type: ignore[return-value]
