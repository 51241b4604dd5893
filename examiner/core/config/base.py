import typing as t

from pydantic_settings import BaseSettings as PydanticBaseSettings

from examiner.model import BaseModel


# NOTE: BaseModel comes second in the MRO so that we keep pydantic-settings
#       behavior but get our by_alias=True model_dump
class BaseSettings(PydanticBaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)


class BaseSecrets(BaseSettings): ...
