"""Tests for health sweeps and the background supervisor."""

import asyncio

import pytest

from s9s.constants import MAX_RESTARTS
from s9s.plugins.context import PluginContext
from s9s.plugins.health import HealthSupervisor
from s9s.plugins.interface import HealthStatus
from tests.conftest import MockPlugin


class RaisingHealthPlugin(MockPlugin):
    def health(self) -> HealthStatus:
        raise RuntimeError("probe exploded")


class TestCheckHealth:
    """Tests for a single health sweep."""

    @pytest.mark.asyncio
    async def test_healthy_plugin_untouched(self, manager):
        plugin = MockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a")

        await manager.check_health()

        assert plugin.stop_calls == 0
        state = await manager.get_plugin_state("a")
        assert state.health.healthy
        assert state.restart_count == 0

    @pytest.mark.asyncio
    async def test_unhealthy_plugin_restarted_then_disabled(self, manager):
        """Restarts happen up to the limit, the next failure disables the plugin."""
        plugin = MockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a")
        plugin.healthy = False

        for attempt in range(1, MAX_RESTARTS + 1):
            await manager.check_health()
            state = await manager.get_plugin_state("a")
            assert state.restart_count == attempt
            assert state.running
            assert not state.health.healthy

        assert plugin.stop_calls == MAX_RESTARTS
        assert plugin.start_calls == MAX_RESTARTS + 1

        await manager.check_health()
        state = await manager.get_plugin_state("a")
        assert not state.enabled and not state.running
        assert state.restart_count == MAX_RESTARTS
        assert plugin.stop_calls == MAX_RESTARTS

    @pytest.mark.asyncio
    async def test_restart_count_survives_recovery(self, manager):
        plugin = MockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a")

        plugin.healthy = False
        await manager.check_health()
        plugin.healthy = True
        await manager.check_health()

        state = await manager.get_plugin_state("a")
        assert state.health.healthy
        assert state.restart_count == 1

    @pytest.mark.asyncio
    async def test_failed_restart_leaves_plugin_enabled(self, manager):
        plugin = MockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a")
        plugin.healthy = False
        plugin.start_error = RuntimeError("still broken")

        await manager.check_health()

        state = await manager.get_plugin_state("a")
        assert state.enabled and not state.running
        assert str(state.last_error) == "still broken"
        assert state.restart_count == 0

        # not running, so later sweeps skip it
        await manager.check_health()
        assert plugin.start_calls == 2

    @pytest.mark.asyncio
    async def test_raising_probe_counts_as_unhealthy(self, manager):
        await manager.register_plugin(RaisingHealthPlugin("a"))
        await manager.enable_plugin("a")

        await manager.check_health()

        state = await manager.get_plugin_state("a")
        assert not state.health.healthy
        assert state.health.message == "probe exploded"
        assert state.restart_count == 1

    @pytest.mark.asyncio
    async def test_disabled_plugins_not_probed(self, manager):
        plugin = MockPlugin("a")
        plugin.healthy = False
        await manager.register_plugin(plugin)

        await manager.check_health()

        assert plugin.start_calls == 0
        assert (await manager.get_plugin_state("a")).health.status == "initialized"


class TestSupervisor:
    """Tests for the periodic supervisor task."""

    @pytest.mark.asyncio
    async def test_supervisor_restarts_failing_plugin(self, manager):
        plugin = MockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a")
        manager.start_health_checks()

        await asyncio.sleep(0.15)
        plugin.healthy = False
        await asyncio.sleep(0.2)

        state = await manager.get_plugin_state("a")
        assert not state.health.healthy
        assert state.restart_count >= 1

        await manager.stop()

    @pytest.mark.asyncio
    async def test_supervisor_exits_on_cancel(self):
        sweeps = []

        async def sweep():
            sweeps.append(1)

        ctx = PluginContext()
        supervisor = HealthSupervisor(sweep, 0.05, ctx)
        supervisor.start()
        await asyncio.sleep(0.12)
        assert supervisor.running

        ctx.cancel()
        await asyncio.wait_for(supervisor.wait_stopped(), timeout=1)

        assert not supervisor.running
        assert len(sweeps) >= 1

    @pytest.mark.asyncio
    async def test_sweep_errors_do_not_kill_supervisor(self):
        sweeps = []

        async def sweep():
            sweeps.append(1)
            raise RuntimeError("sweep failed")

        ctx = PluginContext()
        supervisor = HealthSupervisor(sweep, 0.02, ctx)
        supervisor.start()
        await asyncio.sleep(0.1)

        assert supervisor.running
        assert len(sweeps) >= 2
        ctx.cancel()
        await supervisor.wait_stopped()

    @pytest.mark.asyncio
    async def test_no_health_checks_after_stop(self, manager):
        await manager.stop()
        manager.start_health_checks()
        assert manager._supervisor is None
