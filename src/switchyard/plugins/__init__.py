"""Extension layer: handler discovery via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin failures are warnings, never errors.
"""

from switchyard.plugins.hookspecs import hookimpl
from switchyard.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
