from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings

Seconds = t.Annotated[int, ant.Ge(0)]


class ExamSettings(BaseSettings):
    """Policy constants for assessments and sessions."""

    min_duration_minutes: t.Annotated[int, ant.Ge(1)] = 1
    max_duration_minutes: t.Annotated[int, ant.Ge(1)] = 480
    max_text_length: t.Annotated[int, ant.Ge(1)] = 10000
    invitation_ttl_hours: t.Annotated[int, ant.Ge(1)] = 168
    warnings: WarningThresholds = p.Field(default_factory=lambda: WarningThresholds())

    @p.model_validator(mode="after")
    def check_duration_bounds(self) -> t.Self:
        if self.min_duration_minutes > self.max_duration_minutes:
            raise ValueError("min_duration_minutes must not exceed max_duration_minutes")
        return self


class WarningThresholds(BaseSettings):
    """Remaining-time thresholds, in seconds, for timer warnings"""

    critical: Seconds = 60
    warning: Seconds = 300
    info: Seconds = 600

    @p.model_validator(mode="after")
    def check_order(self) -> t.Self:
        if not self.critical <= self.warning <= self.info:
            raise ValueError("warning thresholds must satisfy critical <= warning <= info")
        return self
