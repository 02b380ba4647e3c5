from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class SMTPSettings(BaseSettings):
    """SMTP relay; the password is read from secrets.notification.smtp_password."""

    host: str
    port: t.Annotated[int, ant.Gt(0), ant.Le(65535)] = 587
    username: str | None = None
    use_tls: bool = True
    timeout: float = 10.0


class NotificationSettings(BaseSettings):
    # "log" only writes outgoing mail to the log
    transport: t.Literal["smtp", "log"] = "log"
    sender: p.EmailStr = "noreply@stagegate.example.org"
    sender_name: str = "Stagegate"
    smtp: SMTPSettings | None = None

    @p.model_validator(mode="after")
    def check_transport(self) -> t.Self:
        if self.transport == "smtp" and self.smtp is None:
            raise ValueError("notification.smtp is required when transport is smtp")
        return self
