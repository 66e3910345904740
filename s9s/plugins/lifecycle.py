"""Plugin lifecycle calls - wraps every call into plugin code."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from s9s.plugins.context import PluginContext
from s9s.plugins.errors import HookFailure, InitializationFailure, StartFailure
from s9s.plugins.interface import HealthStatus, Plugin

logger = logging.getLogger(__name__)


class PluginLifecycle:
    """Invokes plugin lifecycle methods and maps their failures.

    ``init``/``start`` failures are raised as typed errors; ``stop`` and hook
    failures are logged and returned so the caller can carry on.
    """

    async def initialize(
        self, name: str, plugin: Plugin, ctx: PluginContext, config: Dict[str, Any]
    ) -> None:
        """Call the plugin's init().

        Raises:
            InitializationFailure: init() raised
        """
        try:
            await plugin.init(ctx, config)
        except Exception as e:
            logger.error(f"Failed to initialize plugin {name}: {e}")
            raise InitializationFailure(
                f"failed to initialize plugin {name}: {e}", plugin=name
            ) from e

    async def start(self, name: str, plugin: Plugin, ctx: PluginContext) -> None:
        """Call the plugin's start().

        Raises:
            StartFailure: start() raised
        """
        try:
            await plugin.start(ctx)
        except Exception as e:
            logger.error(f"Failed to start plugin {name}: {e}")
            raise StartFailure(f"failed to start plugin {name}: {e}", plugin=name) from e
        logger.debug(f"Started plugin: {name}")

    async def stop(self, name: str, plugin: Plugin, ctx: PluginContext) -> Optional[Exception]:
        """Call the plugin's stop(), logging instead of raising.

        Returns:
            The exception raised by stop(), or None
        """
        try:
            await plugin.stop(ctx)
        except Exception as e:
            logger.error(f"Error stopping plugin {name}: {e}")
            return e
        logger.debug(f"Stopped plugin: {name}")
        return None

    async def run_hook(
        self, name: str, hook: str, call: Callable[[], Awaitable[None]]
    ) -> Optional[HookFailure]:
        """Run a best-effort lifecycle hook.

        Returns:
            HookFailure if the hook raised, None otherwise
        """
        try:
            await call()
        except Exception as e:
            failure = HookFailure(name, hook, e)
            logger.warning(str(failure))
            return failure
        return None

    def probe_health(self, name: str, plugin: Plugin) -> HealthStatus:
        """Query health(); a raising probe counts as unhealthy."""
        try:
            return plugin.health()
        except Exception as e:
            logger.error(f"Health probe of plugin {name} raised: {e}")
            return HealthStatus.failing(message=str(e))
