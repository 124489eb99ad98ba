"""Pydantic base models shared by node responses and configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Accepts both `snake_case` and `camelCase` keys.

    Bee responses use camel case (`synced`, `startedAt`), and YAML configs may
    spell `download_iteration` as `downloadIteration`.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
    )


class StrictBaseModel(CamelModel):
    """Immutable model that rejects unknown keys and lossy coercion."""

    model_config = CamelModel.model_config | ConfigDict(
        extra="forbid",
        frozen=True,
        strict=True,
    )
