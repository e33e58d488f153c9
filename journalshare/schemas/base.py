"""Shared pydantic base for API and stored-document models.

Stored documents and request bodies use camelCase keys; Python code uses
snake_case attribute names.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase or snake_case keys; dumps camelCase with by_alias=True."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)


class StrictCamelModel(CamelModel):
    """CamelModel that rejects unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True, extra="forbid"
    )
