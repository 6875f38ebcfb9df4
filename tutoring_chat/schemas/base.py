"""Shared Pydantic base for payloads that travel with camelCase keys."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def as_payload(self) -> dict[str, Any]:
        """Return a JSON-ready dict using the wire (camelCase) field names."""

        return self.model_dump(mode="json", by_alias=True)


__all__ = ["CamelModel"]
