"""Nominal marker base class for Pydantic models.

`DomainModel` is the common base for both the canonical (Anthropic) models
and the Gemini wire models. Wire aliases are camelCase, so every model accepts
population by field name as well as by alias.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class DomainModel(BaseModel):
    """Nominal marker for Pydantic-based domain and API models."""

    model_config = ConfigDict(populate_by_name=True)

    def __repr__(self) -> str:
        """Provide a concise, one-line summary of the object."""
        class_name = self.__class__.__name__

        # Prefer a short identifying attribute when the model has one
        for attr in ("id", "name", "model", "provider_id"):
            attr_value = getattr(self, attr, None)
            if isinstance(attr_value, str) and attr_value:
                return f'<{class_name} {attr}="{attr_value}">'

        return f"<{class_name}>"

    def to_wire(self) -> dict:
        """Dump the model the way the provider expects it on the wire."""
        return self.model_dump(by_alias=True, exclude_none=True)
