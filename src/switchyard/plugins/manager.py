"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
Each loaded plugin gets one ``switchyard_register`` call with the
application's registry.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

import pluggy

from switchyard.plugins.hookspecs import SwitchyardHookSpec

if TYPE_CHECKING:
    from switchyard.config.models import PluginsConfig
    from switchyard.registration import HandlerRegistry

PROJECT_NAME = "switchyard"
DEFAULT_ENTRY_POINT_GROUP = "switchyard.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and registration hooks."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(SwitchyardHookSpec)
        self._loaded: bool = False

    def discover_and_load(
        self,
        registry: HandlerRegistry,
        *,
        group: str = DEFAULT_ENTRY_POINT_GROUP,
    ) -> list[str]:
        """Load entry-point plugins, then let every plugin register bindings.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(group)
        self._normalize_plugin_instances()
        self.register_all(registry)
        self._loaded = True
        return self.list_plugin_names()

    @classmethod
    def from_config(cls, config: PluginsConfig, registry: HandlerRegistry) -> PluginManager:
        """Build a manager and, when enabled, discover plugins into *registry*."""
        manager = cls()
        if config.enabled:
            manager.discover_and_load(registry, group=config.entry_point_group)
        return manager

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly (e.g. in-tree plugins)."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        """Unregister a plugin instance."""
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def get_plugins(self) -> list[object]:
        """Return all registered plugins."""
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        """Return names of all registered plugins."""
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def register_all(self, registry: HandlerRegistry) -> None:
        """Call ``switchyard_register`` on each plugin in turn.

        A failing plugin is logged and skipped; the others still register.
        """
        for plugin in self._pm.get_plugins():
            hook = getattr(plugin, "switchyard_register", None)
            if hook is None:
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
            try:
                hook(registry=registry)
            except Exception:
                logger.warning(
                    "Plugin %s failed to register its handlers",
                    plugin_name,
                    exc_info=True,
                )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            if not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)

            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue

            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type) -> bool:
        """Check whether *cls* has any methods decorated with ``@hookimpl``.

        Pluggy's ``HookimplMarker("switchyard")`` sets a ``switchyard_impl``
        attribute on decorated methods.
        """
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, "switchyard_impl", None):
                return True
        return False
