"""PluginContext - the lifetime signal handed to plugin calls."""

import asyncio
import logging
from typing import Optional


class PluginContext:
    """Context passed to plugin lifecycle calls.

    The manager owns one context for its whole lifetime and cancels it exactly
    once, on shutdown. Plugins spawning background work should watch
    ``cancelled`` or await ``wait_cancelled()`` to unwind.
    """

    def __init__(self, name: str = "manager", parent: Optional["PluginContext"] = None):
        self.name = name
        self._cancelled = parent._cancelled if parent else asyncio.Event()
        self._logger = logging.getLogger(f"plugin.{name}")

    @classmethod
    def background(cls, name: str = "background") -> "PluginContext":
        """Return a fresh context that is never cancelled by the manager."""
        return cls(name)

    def for_plugin(self, plugin_name: str) -> "PluginContext":
        """Derive a plugin-scoped view sharing this context's cancellation."""
        return PluginContext(plugin_name, parent=self)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    async def wait_cancelled(self) -> None:
        await self._cancelled.wait()

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger for the plugin owning this context.

        Args:
            name: Optional sub-logger name (appended to plugin.{name})

        Returns:
            Logger instance
        """
        if name:
            return logging.getLogger(f"plugin.{self.name}.{name}")
        return self._logger
