"""Periodic plugin health supervisor."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from s9s.plugins.context import PluginContext

logger = logging.getLogger(__name__)


class HealthSupervisor:
    """Runs a health sweep every ``interval`` seconds until the context is cancelled.

    The sweep itself (polling, restarts, demotion) belongs to the manager; the
    supervisor only owns the background task and its timing.
    """

    def __init__(
        self,
        sweep: Callable[[], Awaitable[None]],
        interval: float,
        ctx: PluginContext,
    ):
        self.interval = interval
        self._sweep = sweep
        self._ctx = ctx
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Launch the supervisor task on the running event loop."""
        if self.running:
            logger.debug("Health supervisor already running")
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="plugin-health-supervisor"
        )

    async def wait_stopped(self) -> None:
        """Wait for the supervisor task to exit after the context is cancelled."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            logger.debug("Health supervisor task was cancelled")

    async def _run(self) -> None:
        logger.info(f"Starting plugin health checks (interval={self.interval}s)")
        while not self._ctx.cancelled:
            try:
                await asyncio.wait_for(self._ctx.wait_cancelled(), timeout=self.interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self._sweep()
            except Exception as e:
                logger.error(f"Error in plugin health sweep: {e}")

        logger.info("Plugin health checks stopped")
