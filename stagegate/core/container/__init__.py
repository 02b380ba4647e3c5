__all__ = [
    "AuthContainer",
    "BootConfiguration",
    "NotificationContainer",
    "ReviewContainer",
    "StagegateContainer",
    "StorageContainer",
    "TemplateContainer",
]

from .auth import AuthContainer
from .notification import NotificationContainer
from .review import ReviewContainer
from .stagegate import BootConfiguration, StagegateContainer
from .storage import StorageContainer
from .template import TemplateContainer
