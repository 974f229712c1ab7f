"""Shared pydantic base for models exchanged with the enrollment back end.

The back end speaks camelCase JSON while the SDK uses snake_case attributes.
``WireModel`` bridges the two: fields are declared in snake_case, parsed from
either spelling, and serialised back with ``model_dump(by_alias=True)``.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model with camelCase aliases and name-based population."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
