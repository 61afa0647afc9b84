"""Pluggy hook specifications for switchyard handler plugins.

A plugin contributes handlers, behaviors, and processors by implementing
``switchyard_register`` and writing into the registry it is handed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from switchyard.registration import HandlerRegistry

hookspec = pluggy.HookspecMarker("switchyard")
hookimpl = pluggy.HookimplMarker("switchyard")


class SwitchyardHookSpec:
    """Hook specifications for the switchyard plugin system."""

    @hookspec
    def switchyard_register(self, registry: HandlerRegistry) -> None:
        """Add this plugin's bindings to *registry*."""
