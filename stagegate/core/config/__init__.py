__all__ = [
    "AuthSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "NotificationSettings",
    "ReviewSettings",
    "Secrets",
    "Settings",
    "StagegateWebSettings",
    "StorageSettings",
    "TemplateSettings",
    "WebSettings",
]


from .logging import LoggingSettings
from .notification import NotificationSettings
from .review import ReviewSettings
from .secrets import Secrets
from .settings import Settings
from .storage import DatabaseSettings, StorageSettings
from .template import TemplateSettings
from .web import AuthSettings, StagegateWebSettings, WebSettings
