from __future__ import annotations

import email.message
import email.utils
import smtplib
import typing as t

import jinja2
import pydantic as p

from stagegate.model import NotificationEvent

if t.TYPE_CHECKING:
    from stagegate.core.provider import LoggingProvider


class RenderedEmail(t.NamedTuple):
    subject: str
    html: str


class EmailRenderer(object):
    """Renders `<event>.subject.txt` / `<event>.html` pairs, e.g. `review_assigned.html`."""

    def __init__(self, env: jinja2.Environment, public_url: str | p.AnyHttpUrl):
        self.env = env
        self.public_url = str(public_url).rstrip("/")

    def render(self, event: NotificationEvent, context: t.Mapping[str, t.Any]) -> RenderedEmail:
        name = event.value.lower()
        context = {"public_url": self.public_url, **context}
        subject = self.env.get_template(f"{name}.subject.txt").render(context)
        html = self.env.get_template(f"{name}.html").render(context)
        # a subject is one line, whatever the template's trailing whitespace
        return RenderedEmail(subject=" ".join(subject.split()), html=html)


class EmailSender(t.Protocol):
    def send(self, *, to: str, to_name: str | None, subject: str, html: str) -> None: ...


class LogEmailSender(object):
    """Writes outgoing mail to the log instead of delivering it."""

    def __init__(self, sender: str, sender_name: str, logging: LoggingProvider):
        self.sender = sender
        self.sender_name = sender_name
        self.logger = logging.get_logger("cls")

    def send(self, *, to: str, to_name: str | None, subject: str, html: str) -> None:
        self.logger.info(
            "email (not delivered)",
            extra={
                "from": email.utils.formataddr((self.sender_name, self.sender)),
                "to": email.utils.formataddr((to_name or "", to)),
                "subject": subject,
            },
        )
        self.logger.trace(html)


class SMTPEmailSender(object):
    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str | None,
        password: p.Secret[str] | None,
        use_tls: bool,
        timeout: float,
        sender: str,
        sender_name: str,
        logging: LoggingProvider,
    ):
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.sender = sender
        self.sender_name = sender_name
        self.logger = logging.get_logger("cls")

    def message(self, *, to: str, to_name: str | None, subject: str, html: str) -> email.message.EmailMessage:
        msg = email.message.EmailMessage()
        msg["Subject"] = subject
        msg["From"] = email.utils.formataddr((self.sender_name, self.sender))
        msg["To"] = email.utils.formataddr((to_name or "", to))
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def send(self, *, to: str, to_name: str | None, subject: str, html: str) -> None:
        msg = self.message(to=to, to_name=to_name, subject=subject, html=html)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self._password is not None:
                smtp.login(self.username, self._password.get_secret_value())
            smtp.send_message(msg)
        self.logger.info("email sent", extra={"to": to, "subject": subject, "host": self.host})
