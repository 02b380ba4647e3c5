__all__ = [
    "BootConfiguration",
    "di",
    "StagegateContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, StagegateContainer
from .provider import LoggingProvider, TimestampProvider
