from __future__ import annotations

import typing as t


class Singleton(object):
    _instance: t.ClassVar[t.Any] = None

    def __new__(cls) -> t.Self:
        if cls.__dict__.get("_instance") is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return f"<{self.__class__.__name__}>"


class NotReady(Singleton):
    """Placeholder for a container value that is only known after boot"""


class NotSet(Singleton):
    """Distinguishes an omitted keyword from an explicit None"""
