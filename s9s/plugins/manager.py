"""Plugin manager - top-level orchestrator of the plugin lifecycle."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from s9s.constants import HEALTH_CHECK_INTERVAL, MAX_RESTARTS
from s9s.plugins.context import PluginContext
from s9s.plugins.errors import (
    AlreadyEnabled,
    ConfigApplyFailure,
    ConfigValidationFailure,
    DependencyInUse,
    InitializationFailure,
    MissingDependency,
    NotEnabled,
    StartFailure,
)
from s9s.plugins.health import HealthSupervisor
from s9s.plugins.interface import HealthStatus, Info, Plugin
from s9s.plugins.lifecycle import PluginLifecycle
from s9s.plugins.locks import RWLock
from s9s.plugins.registry import PluginRegistry

logger = logging.getLogger(__name__)


def _registered_health() -> HealthStatus:
    return HealthStatus(healthy=True, status="initialized", message="Plugin registered")


@dataclass
class PluginState:
    """Runtime state of a plugin, owned by the manager.

    ``running`` implies ``enabled``; a plugin whose restart failed stays
    enabled but not running until it is disabled.
    """

    enabled: bool = False
    running: bool = False
    health: HealthStatus = field(default_factory=_registered_health)
    last_error: Optional[BaseException] = None
    start_time: Optional[datetime] = None
    restart_count: int = 0

    def copy(self) -> "PluginState":
        return replace(self, health=replace(self.health, details=dict(self.health.details)))


@dataclass
class PluginEntry:
    """Plugin metadata combined with its runtime state."""

    info: Info
    state: PluginState

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def enabled(self) -> bool:
        return self.state.enabled

    @property
    def running(self) -> bool:
        return self.state.running

    def to_dict(self) -> dict:
        """Serialize the entry for display."""
        return {
            "name": self.info.name,
            "version": self.info.version,
            "description": self.info.description,
            "requires": list(self.info.requires),
            "provides": list(self.info.provides),
            "enabled": self.state.enabled,
            "running": self.state.running,
            "health": self.state.health.status,
            "healthy": self.state.health.healthy,
            "message": self.state.health.message,
            "restart_count": self.state.restart_count,
            "last_error": str(self.state.last_error) if self.state.last_error else None,
            "start_time": self.state.start_time.isoformat() if self.state.start_time else None,
        }


class PluginManager:
    """Registers plugins and drives their lifecycle.

    Every mutating operation (register, enable, disable, config update, health
    sweep, stop) holds the write side of one reader/writer lock, and calls into
    plugin code happen inside that critical section. Read accessors share the
    read side. A slow plugin call therefore blocks the whole manager.
    """

    def __init__(self, health_check_interval: Optional[float] = None):
        self.registry = PluginRegistry()
        self.lifecycle = PluginLifecycle()
        self.health_check_interval = (
            HEALTH_CHECK_INTERVAL if health_check_interval is None else health_check_interval
        )

        self._lock = RWLock()
        self._states: Dict[str, PluginState] = {}
        self._configs: Dict[str, Dict[str, Any]] = {}
        self._ctx = PluginContext("manager")
        self._supervisor: Optional[HealthSupervisor] = None

    @property
    def context(self) -> PluginContext:
        """Lifetime context, cancelled by stop()."""
        return self._ctx

    def _state(self, name: str) -> PluginState:
        # plugins added to self.registry directly get their state on first use
        return self._states.setdefault(name, PluginState())

    # ------------------------------------------------------------------
    # Registration and lifecycle
    # ------------------------------------------------------------------

    async def register_plugin(self, plugin: Plugin) -> None:
        """Register a plugin; it starts out disabled."""
        async with self._lock.writer():
            info = self.registry.register(plugin)
            self._states[info.name] = PluginState()

    async def enable_plugin(self, name: str, config: Optional[Dict[str, Any]] = None) -> None:
        """Initialize and start a plugin.

        Every plugin named in its ``requires`` must already be running.

        Raises:
            PluginNotFound, AlreadyEnabled, MissingDependency: nothing changed
            InitializationFailure, StartFailure: plugin left disabled,
                ``last_error`` recorded; calling enable again re-runs init
        """
        async with self._lock.writer():
            plugin = self.registry.get(name)
            state = self._state(name)
            if state.enabled:
                raise AlreadyEnabled(name)

            info = self.registry.get_info(name)
            for dep in info.requires:
                dep_state = self._states.get(dep)
                if dep_state is None or not dep_state.running:
                    raise MissingDependency(name, dep)

            config = dict(config) if config is not None else {}
            self._configs[name] = config
            ctx = self._ctx.for_plugin(name)

            try:
                await self.lifecycle.initialize(name, plugin, ctx, config)
                await self.lifecycle.start(name, plugin, ctx)
            except (InitializationFailure, StartFailure) as e:
                state.last_error = e.__cause__ or e
                raise

            state.enabled = True
            state.running = True
            state.start_time = datetime.now()
            state.health = self.lifecycle.probe_health(name, plugin)

            if self.registry.capabilities(name).lifecycle:
                await self.lifecycle.run_hook(name, "on_enable", lambda: plugin.on_enable(ctx))

        logger.info(f"Enabled plugin: {name}")

    async def disable_plugin(self, name: str) -> None:
        """Stop a plugin and mark it disabled.

        Once the dependency check passes the plugin always ends up disabled,
        even if its stop() raises.

        Raises:
            PluginNotFound, NotEnabled, DependencyInUse: nothing changed
        """
        async with self._lock.writer():
            plugin = self.registry.get(name)
            state = self._state(name)
            if not state.enabled:
                raise NotEnabled(name)

            for other in self.registry.names():
                if other == name or not self._state(other).enabled:
                    continue
                if name in self.registry.get_info(other).requires:
                    raise DependencyInUse(name, other)

            ctx = self._ctx.for_plugin(name)
            if self.registry.capabilities(name).lifecycle:
                await self.lifecycle.run_hook(name, "on_disable", lambda: plugin.on_disable(ctx))

            await self.lifecycle.stop(name, plugin, ctx)

            state.enabled = False
            state.running = False

        logger.info(f"Disabled plugin: {name}")

    async def update_plugin_config(self, name: str, config: Dict[str, Any]) -> None:
        """Validate and apply a new configuration.

        Configurable plugins get validate_config() then set_config(); if the
        plugin is also lifecycle-aware and its on_config_change() hook fails,
        the previous configuration is re-applied. The submitted config is
        stored for every plugin, configurable or not.

        Raises:
            PluginNotFound
            ConfigValidationFailure: rejected, nothing changed
            ConfigApplyFailure: set_config() or the change hook failed
        """
        async with self._lock.writer():
            plugin = self.registry.get(name)
            caps = self.registry.capabilities(name)
            new_config = dict(config)

            if caps.configurable:
                try:
                    plugin.validate_config(new_config)
                except Exception as e:
                    raise ConfigValidationFailure(
                        f"invalid configuration for plugin {name}: {e}", plugin=name
                    ) from e

                old_config = dict(self._configs.get(name, {}))
                try:
                    plugin.set_config(new_config)
                except Exception as e:
                    raise ConfigApplyFailure(
                        f"failed to apply configuration for plugin {name}: {e}", plugin=name
                    ) from e

                if caps.lifecycle:
                    ctx = self._ctx.for_plugin(name)
                    failure = await self.lifecycle.run_hook(
                        name,
                        "on_config_change",
                        lambda: plugin.on_config_change(ctx, dict(old_config), new_config),
                    )
                    if failure is not None:
                        self._rollback_config(name, plugin, old_config)
                        raise ConfigApplyFailure(
                            f"configuration change failed for plugin {name}: {failure.cause}",
                            plugin=name,
                        ) from failure.cause

            self._configs[name] = new_config

        logger.info(f"Updated configuration for plugin: {name}")

    def _rollback_config(self, name: str, plugin: Plugin, old_config: Dict[str, Any]) -> None:
        try:
            plugin.set_config(old_config)
        except Exception as e:
            logger.error(f"Rollback of configuration for plugin {name} failed: {e}")
        else:
            logger.info(f"Rolled back configuration for plugin: {name}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_plugin(self, name: str) -> Plugin:
        async with self._lock.reader():
            return self.registry.get(name)

    async def get_plugin_state(self, name: str) -> PluginState:
        """Return a snapshot of the plugin's state."""
        async with self._lock.reader():
            self.registry.get(name)
            return self._state(name).copy()

    async def get_plugin_config(self, name: str) -> Dict[str, Any]:
        """Return the configuration last stored for the plugin."""
        async with self._lock.reader():
            self.registry.get(name)
            return dict(self._configs.get(name, {}))

    async def list_plugins(self) -> List[PluginEntry]:
        """List every registered plugin with its state. Order is not guaranteed."""
        async with self._lock.reader():
            return [
                PluginEntry(info=self.registry.get_info(name), state=self._state(name).copy())
                for name in self.registry.names()
            ]

    async def get_view_plugins(self) -> List[Plugin]:
        """Running plugins that provide views."""
        return await self._running_with("view")

    async def get_overlay_plugins(self) -> List[Plugin]:
        """Running plugins that provide overlays."""
        return await self._running_with("overlay")

    async def get_data_plugins(self) -> List[Plugin]:
        """Running plugins that provide data feeds."""
        return await self._running_with("data")

    async def get_plugins_by_capability(self, tag: str) -> List[Plugin]:
        """Running plugins declaring ``tag`` in Info.provides."""
        async with self._lock.reader():
            return [
                self.registry.get(name)
                for name in self.registry.names()
                if self._state(name).running and tag in self.registry.get_info(name).provides
            ]

    async def _running_with(self, capability: str) -> List[Plugin]:
        async with self._lock.reader():
            return [
                self.registry.get(name)
                for name in self.registry.names()
                if self._state(name).running
                and getattr(self.registry.capabilities(name), capability)
            ]

    def dependency_order(self) -> List[str]:
        """Plugin names ordered requirements-first. See PluginRegistry.get_dependency_order."""
        return self.registry.get_dependency_order()

    # ------------------------------------------------------------------
    # Health supervision
    # ------------------------------------------------------------------

    def start_health_checks(self) -> None:
        """Launch the periodic health supervisor. Needs a running event loop."""
        if self._ctx.cancelled:
            logger.warning("Plugin manager is stopped, not starting health checks")
            return
        if self._supervisor is None:
            self._supervisor = HealthSupervisor(
                self.check_health, self.health_check_interval, self._ctx
            )
        self._supervisor.start()

    async def check_health(self) -> None:
        """Run one health sweep over every running plugin.

        Unhealthy plugins are restarted (stop, then start) up to MAX_RESTARTS
        times over their lifetime; past that they are disabled.
        """
        async with self._lock.writer():
            for name in self.registry.names():
                state = self._state(name)
                if not state.running:
                    continue

                plugin = self.registry.get(name)
                health = self.lifecycle.probe_health(name, plugin)
                state.health = health
                if health.healthy:
                    continue

                logger.warning(f"Plugin {name} unhealthy: {health.message}")

                if state.restart_count >= MAX_RESTARTS:
                    logger.error(f"Plugin {name} exceeded restart limit, disabling")
                    state.running = False
                    state.enabled = False
                    continue

                logger.info(
                    f"Attempting to restart plugin {name} "
                    f"(attempt {state.restart_count + 1}/{MAX_RESTARTS})"
                )
                ctx = self._ctx.for_plugin(name)
                await self.lifecycle.stop(name, plugin, ctx)
                try:
                    await self.lifecycle.start(name, plugin, ctx)
                except StartFailure as e:
                    logger.error(f"Failed to restart plugin {name}: {e}")
                    state.running = False
                    state.last_error = e.__cause__ or e
                else:
                    state.restart_count += 1
                    state.start_time = datetime.now()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Cancel the manager context and stop every running plugin.

        Plugins are stopped dependents-first in repeated passes until a pass
        makes no progress. Plugins caught in a dependency cycle are left
        running. Calling stop() again makes no further plugin calls.
        """
        self._ctx.cancel()
        if self._supervisor is not None:
            await self._supervisor.wait_stopped()

        async with self._lock.writer():
            names = self.registry.names()
            stopped: Set[str] = set()

            progressed = True
            while progressed:
                progressed = False
                for name in names:
                    if name in stopped:
                        continue

                    state = self._state(name)
                    if state.running:
                        if not self._can_stop(name, names, stopped):
                            continue
                        logger.info(f"Stopping plugin: {name}")
                        await self.lifecycle.stop(
                            name, self.registry.get(name), PluginContext.background(name)
                        )
                    state.running = False
                    state.enabled = False
                    stopped.add(name)
                    progressed = True

            remaining = [n for n in names if n not in stopped]
            if remaining:
                logger.warning(
                    f"Could not stop plugins with cyclic dependencies: {', '.join(remaining)}"
                )

        logger.info("Plugin manager stopped")

    def _can_stop(self, name: str, names: List[str], stopped: Set[str]) -> bool:
        """True if no other not-yet-stopped plugin requires ``name``."""
        for other in names:
            if other == name or other in stopped:
                continue
            if name in self.registry.get_info(other).requires:
                return False
        return True
