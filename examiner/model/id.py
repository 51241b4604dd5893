from __future__ import annotations

import typing as t

import pydantic as p
import pydantic_core.core_schema as core_schema
import shortuuid

KEY_LENGTH = 22


class ShortUUIDKey(str):
    """
    A shortuuid with a type prefix, e.g. `asmt$<22 chars>`; the prefix makes a
    key self-describing in logs and URLs and is stripped before storage
    """

    prefix: t.ClassVar[str]
    separator: t.ClassVar[str]

    @classmethod
    def validate_str(cls, v: ShortUUIDKey | str | None, _: p.ValidationInfo) -> ShortUUIDKey | None:
        return cls(v) if v is not None else v

    @classmethod
    def __get_pydantic_json_schema__(cls, src: t.Any, handler: p.GetJsonSchemaHandler) -> p.json_schema.JsonSchemaValue:
        return {
            "type": "string",
        }

    @classmethod
    def __get_pydantic_core_schema__(cls, src: t.Any, handler: p.GetCoreSchemaHandler) -> core_schema.CoreSchema:
        from_str_schema = core_schema.chain_schema([
            core_schema.str_schema(),
            core_schema.with_info_after_validator_function(cls.validate_str, schema=core_schema.str_schema()),
        ])
        to_str = core_schema.plain_serializer_function_ser_schema(cls.__str__)

        return core_schema.json_or_python_schema(
            json_schema=from_str_schema,
            python_schema=core_schema.union_schema([
                core_schema.is_instance_schema(cls),
                from_str_schema,
            ]),
            serialization=to_str,
        )

    def __init_subclass__(cls, prefix: str, separator: str = "$"):
        super().__init_subclass__()
        if len(prefix) != 4 or len(separator) != 1:
            raise TypeError(f"{cls.__name__}: prefix must have length 4 and separator length 1")
        cls.prefix = prefix
        cls.separator = separator

    def __new__(cls, s: str | None = None, /, key: str | None = None) -> t.Self:
        """
        `s` must be a complete, prefixed key; `key` is the bare shortuuid as
        stored in the database and is trusted without validation. With neither,
        a new key is generated.
        """
        if key is None:
            if s is not None:
                if not s.startswith(cls.prefix + cls.separator):
                    raise ValueError(f"invalid {cls.__name__}: key must begin with {cls.prefix}")
                lpre = len(cls.prefix) + len(cls.separator)
                if len(s) != KEY_LENGTH + lpre:
                    raise ValueError(f"invalid {cls.__name__}: key must have length {KEY_LENGTH}")
                alphabet = shortuuid.get_alphabet()
                if any((c not in alphabet) for c in s[lpre:]):
                    raise ValueError(f"invalid {cls.__name__}: key must comprise only {alphabet}")
                return super().__new__(cls, s)
            key = shortuuid.uuid()
        return super().__new__(cls, cls.separator.join((cls.prefix, key)))

    @property
    def key(self) -> str:
        return self[len(self.prefix) + len(self.separator) :]

    def __hash__(self) -> int:
        return str.__hash__(self)

    def __str__(self) -> str:
        return str.__str__(self)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.key!s}>"


# fmt: off
class UserID(ShortUUIDKey, prefix="user"): ...
class AssessmentID(ShortUUIDKey, prefix="asmt"): ...
class QuestionID(ShortUUIDKey, prefix="qstn"): ...
class GrantID(ShortUUIDKey, prefix="grnt"): ...
class SessionID(ShortUUIDKey, prefix="sesn"): ...
class AnswerID(ShortUUIDKey, prefix="answ"): ...
class ResponseID(ShortUUIDKey, prefix="resp"): ...
# fmt: on
