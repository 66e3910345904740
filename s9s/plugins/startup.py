"""Host startup - register linked-in plugins and enable the configured ones."""

import logging
from dataclasses import replace
from typing import Dict, Iterable, Optional

from s9s.plugins.config import PluginConfigService
from s9s.plugins.errors import DependencyCycle, MissingDependency, PluginError
from s9s.plugins.interface import Plugin
from s9s.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


async def load_all(
    manager: PluginManager,
    plugins: Iterable[Plugin],
    config_service: PluginConfigService,
) -> Dict[str, Optional[PluginError]]:
    """Register ``plugins`` and enable those marked enabled in the startup file.

    Resource-managing plugins get the file's per-plugin limits before they
    are enabled. Plugins are enabled requirements-first, and a failure does
    not stop the remaining plugins from being tried.

    Returns:
        Mapping of plugin name -> error (None if enabled successfully)
    """
    for plugin in plugins:
        try:
            await manager.register_plugin(plugin)
        except PluginError as e:
            logger.error(f"Skipping plugin registration: {e}")

    limits = config_service.settings.resource_limits()
    for name in manager.registry.names():
        if manager.registry.capabilities(name).resources:
            plugin = manager.registry.get(name)
            plugin.set_resource_limits(
                replace(
                    plugin.get_resource_limits(),
                    max_memory_bytes=limits.max_memory_bytes,
                    max_cpu_percent=limits.max_cpu_percent,
                )
            )

    try:
        order = manager.dependency_order()
    except (DependencyCycle, MissingDependency) as e:
        logger.warning(f"Cannot order plugins by dependency ({e}), using registration order")
        order = manager.registry.names()

    results: Dict[str, Optional[PluginError]] = {}
    for name in order:
        if not config_service.is_enabled(name):
            logger.info(f"Plugin '{name}' is not enabled, skipping")
            continue
        try:
            await manager.enable_plugin(name, config_service.get_plugin_config(name))
            results[name] = None
        except PluginError as e:
            logger.error(f"Failed to enable plugin {name}: {e}")
            results[name] = e

    for name in set(config_service.get_enabled_list()) - set(order):
        logger.warning(f"Enabled plugin '{name}' is not registered")

    started = sum(1 for err in results.values() if err is None)
    logger.info(
        f"Plugin system initialized, {started}/{manager.registry.count()} plugins started"
    )
    return results
