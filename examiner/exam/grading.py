"""Per-kind response validation and grading.

Each `QuestionKind` has one `ItemGrader`. `validate` normalizes a raw response
or raises InvalidResponse; `grade` returns the marks earned, or None when the
kind is graded by a reviewer.
"""

from __future__ import annotations

import abc
import decimal
import typing as t

import annotated_types as ant
import pydantic as p

from examiner.core.config import ExamSettings
from examiner.model import BaseModel, QuestionKind

from .errors import InvalidResponse

TModel = t.TypeVar("TModel", bound=BaseModel)


class SingleSelectContent(BaseModel):
    prompt: str
    options: t.Annotated[list[str], ant.MinLen(2)]


class SingleSelectKey(BaseModel):
    correct_option: t.Annotated[int, ant.Ge(0)]


class SingleSelectResponse(BaseModel):
    model_config = p.ConfigDict(extra="forbid")

    selected_option: p.StrictInt


class TextResponse(BaseModel):
    model_config = p.ConfigDict(extra="forbid")

    text: p.StrictStr


class CodeResponse(BaseModel):
    model_config = p.ConfigDict(extra="forbid")

    code: p.StrictStr
    language: str | None = None


class ItemGrader(abc.ABC):
    kind: t.ClassVar[QuestionKind]
    objective: t.ClassVar[bool]

    @abc.abstractmethod
    def validate(self, content: dict[str, t.Any], response: dict[str, t.Any], policy: ExamSettings) -> dict[str, t.Any]:
        """The normalized response to store"""

    @abc.abstractmethod
    def grade(
        self, response: dict[str, t.Any], key: dict[str, t.Any] | None, marks: decimal.Decimal
    ) -> decimal.Decimal | None: ...

    @staticmethod
    def parse(model: type[TModel], data: dict[str, t.Any]) -> TModel:
        try:
            return model.model_validate(data)
        except p.ValidationError as e:
            raise InvalidResponse(f"malformed response: {e.errors(include_url=False)[0]['msg']}") from e


class SingleSelectGrader(ItemGrader):
    kind = QuestionKind.SingleSelect
    objective = True

    def validate(self, content: dict[str, t.Any], response: dict[str, t.Any], policy: ExamSettings) -> dict[str, t.Any]:
        options = SingleSelectContent.model_validate(content).options
        selected = self.parse(SingleSelectResponse, response).selected_option
        if not 0 <= selected < len(options):
            raise InvalidResponse(f"selected option must be between 0 and {len(options) - 1}")
        return {"selected_option": selected}

    def grade(
        self, response: dict[str, t.Any], key: dict[str, t.Any] | None, marks: decimal.Decimal
    ) -> decimal.Decimal | None:
        if key is None:
            raise ValueError("single-select question has no answer key")
        correct = SingleSelectKey.model_validate(key).correct_option
        return marks if response["selected_option"] == correct else decimal.Decimal(0)


class ShortAnswerGrader(ItemGrader):
    kind = QuestionKind.ShortAnswer
    objective = False

    def validate(self, content: dict[str, t.Any], response: dict[str, t.Any], policy: ExamSettings) -> dict[str, t.Any]:
        text = self.parse(TextResponse, response).text.strip()
        check_text(text, policy)
        return {"text": text}

    def grade(
        self, response: dict[str, t.Any], key: dict[str, t.Any] | None, marks: decimal.Decimal
    ) -> decimal.Decimal | None:
        return None


class CodingGrader(ItemGrader):
    kind = QuestionKind.Coding
    objective = False

    def validate(self, content: dict[str, t.Any], response: dict[str, t.Any], policy: ExamSettings) -> dict[str, t.Any]:
        parsed = self.parse(CodeResponse, response)
        # indentation is significant, so code is stored untrimmed
        check_text(parsed.code.strip(), policy)
        return {"code": parsed.code, "language": parsed.language or content.get("language")}

    def grade(
        self, response: dict[str, t.Any], key: dict[str, t.Any] | None, marks: decimal.Decimal
    ) -> decimal.Decimal | None:
        return None


def check_text(text: str, policy: ExamSettings) -> None:
    if not text:
        raise InvalidResponse("response must not be empty")
    if len(text) > policy.max_text_length:
        raise InvalidResponse(f"response must be at most {policy.max_text_length} characters")


GRADERS: dict[QuestionKind, ItemGrader] = {
    g.kind: g for g in (SingleSelectGrader(), ShortAnswerGrader(), CodingGrader())
}


def grader_for(kind: QuestionKind) -> ItemGrader:
    return GRADERS[kind]
