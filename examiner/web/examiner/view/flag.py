"""View models for flag endpoints."""

from __future__ import annotations

import datetime

from examiner.model import BaseModel, Flag, QuestionID


class FlagRequest(BaseModel):
    flagged: bool


class FlagResponse(BaseModel):
    question_id: QuestionID
    flagged: bool
    update_time: datetime.datetime | None = None

    @classmethod
    def of(cls, flag: Flag) -> FlagResponse:
        return cls(question_id=flag.question_id, flagged=flag.flagged, update_time=flag.update_time)


class FlagListResponse(BaseModel):
    flags: list[FlagResponse]


class ClearFlagsResponse(BaseModel):
    cleared: int
