"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) in the ``idcgroup.plugins`` group
via pluggy's setuptools entrypoint loader.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import pluggy

from idcgroup.plugins.builtins.jinja_resolver import JinjaResolverPlugin
from idcgroup.plugins.hookspecs import PROJECT_NAME, IdcgroupHookSpec
from idcgroup.templates import TemplateResolution

ENTRY_POINT_GROUP = f"{PROJECT_NAME}.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(IdcgroupHookSpec)
        self._loaded: bool = False
        self.register_plugin(JinjaResolverPlugin(), name="jinja")

    def discover_and_load(self) -> list[str]:
        """Load entry-point plugins and return all registered plugin names.

        A plugin that fails to import is logged and skipped.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load %s entry points", ENTRY_POINT_GROUP, exc_info=True)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def resolve_params(self, params: dict[str, Any], scope: dict[str, Any]) -> TemplateResolution:
        """Dispatch ``resolve_params``; the built-in resolver always answers."""
        return self._pm.hook.resolve_params(params=params, scope=scope)

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
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
