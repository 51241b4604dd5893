"""Dialect-specific INSERT constructs for the backends we run on."""

from __future__ import annotations

import typing as t

from sqlalchemy.dialects import postgresql, sqlite

from . import Session

Insert = postgresql.Insert | sqlite.Insert


def insert(table: t.Any, *, session: Session) -> Insert:
    """An INSERT supporting `on_conflict_do_nothing`/`on_conflict_do_update` on the session's backend"""
    bind = session.get_bind()
    if bind.dialect.name == "postgresql":
        return postgresql.insert(table)
    if bind.dialect.name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"upserts are not supported on {bind.dialect.name}")
