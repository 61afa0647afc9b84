"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, switchyard.toml only contains
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel


class PublisherStrategy(StrEnum):
    """Process-wide notification fan-out policy, chosen once at startup."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    BACKGROUND = "background"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    entry_point_group: str = "switchyard.plugins"
