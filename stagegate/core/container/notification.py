from __future__ import annotations

import jinja2
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, Selector, Singleton

from stagegate.notification.email import EmailRenderer, LogEmailSender, SMTPEmailSender

from ..provider import LoggingProvider


class NotificationContainer(DeclarativeContainer):
    config: Configuration = Configuration(strict=True)
    secrets: Configuration = Configuration()
    logging: Provider[LoggingProvider] = Provider()
    templates: Provider[jinja2.Environment] = Provider()
    public_url: Provider[str] = Provider()

    renderer: Provider[EmailRenderer] = Singleton(EmailRenderer, env=templates, public_url=public_url)
    sender = Selector(
        config.transport,
        smtp=Singleton(
            SMTPEmailSender,
            host=config.smtp.host,
            port=config.smtp.port,
            username=config.smtp.username,
            password=secrets.smtp_password,
            use_tls=config.smtp.use_tls,
            timeout=config.smtp.timeout,
            sender=config.sender,
            sender_name=config.sender_name,
            logging=logging,
        ),
        log=Singleton(LogEmailSender, sender=config.sender, sender_name=config.sender_name, logging=logging),
    )
