__all__ = [
    "BootConfiguration",
    "di",
    "ExaminerContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .provider import LoggingProvider, TimestampProvider
from .config import Secrets, Settings  # isort: skip
from .container import BootConfiguration, ExaminerContainer  # isort: skip
