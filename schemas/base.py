"""Shared pydantic configuration for API payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes fields as camelCase while accepting snake_case input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
