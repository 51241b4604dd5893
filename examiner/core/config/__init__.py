__all__ = [
    "AuthSettings",
    "ExamSettings",
    "ExaminerWebSettings",
    "LoggingSettings",
    "Secrets",
    "Settings",
    "StorageSettings",
    "WarningThresholds",
    "WebSettings",
]


from .exam import ExamSettings, WarningThresholds
from .logging import LoggingSettings
from .secrets import Secrets
from .settings import Settings
from .storage import StorageSettings
from .web import AuthSettings, ExaminerWebSettings, WebSettings
