__all__ = [
    "AuthContainer",
    "BootConfiguration",
    "ExaminerContainer",
    "PersistentContainer",
    "StorageContainer",
]

from .auth import AuthContainer
from .examiner import BootConfiguration, ExaminerContainer
from .storage import PersistentContainer, StorageContainer
