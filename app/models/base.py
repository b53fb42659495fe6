"""Shared model configuration."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model serialized with camelCase keys, as stored and sent over the wire.

    Fields can still be populated by their Python names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Dump to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
