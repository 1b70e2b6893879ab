"""
Bot catalog entries.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BotInfo(BaseModel):
    """A bot (model) available on the service."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Bot identifier used when sending queries")
    display_name: str = Field(description="Human-readable name")
    capabilities: frozenset[str] = Field(
        default=frozenset(), description="Capability flags, e.g. 'image_input'"
    )
    owned_by: str | None = Field(default=None, description="Bot owner")
    created: int | None = Field(default=None, description="Creation time (unix seconds)")
    description: str | None = Field(default=None, description="Bot description")

    def supports(self, capability: str) -> bool:
        """Check whether the bot advertises a capability flag."""
        return capability in self.capabilities

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> BotInfo:
        """Build from one entry of the models endpoint.

        Input and output modalities become ``<modality>_input`` and
        ``<modality>_output`` capability flags.
        """
        capabilities: set[str] = set()
        architecture = data.get("architecture") or {}
        for modality in architecture.get("input_modalities") or ():
            capabilities.add(f"{modality}_input")
        for modality in architecture.get("output_modalities") or ():
            capabilities.add(f"{modality}_output")
        capabilities.update(data.get("capabilities") or ())

        return cls(
            id=data["id"],
            display_name=data.get("display_name") or data.get("name") or data["id"],
            capabilities=frozenset(capabilities),
            owned_by=data.get("owned_by"),
            created=data.get("created"),
            description=data.get("description"),
        )
