from pydantic import EmailStr

from .base import WithTimestamps
from .enum import UserRole
from .id import UserID


class User(WithTimestamps):
    user_id: UserID
    email: EmailStr
    name: str
    role: UserRole
    department: str | None = None
    password_hash: str | None = None
