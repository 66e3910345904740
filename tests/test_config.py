"""Tests for runtime configuration updates and the startup config file."""

import json

import pytest

from s9s.plugins.config import PluginConfigService
from s9s.plugins.errors import ConfigApplyFailure, ConfigValidationFailure, PluginNotFound
from tests.conftest import ConfigurableMockPlugin, LifecycleMockPlugin, MockPlugin


class TestUpdatePluginConfig:
    """Tests for PluginManager.update_plugin_config."""

    @pytest.mark.asyncio
    async def test_applies_valid_config(self, manager):
        plugin = ConfigurableMockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a", {"level": 1})

        await manager.update_plugin_config("a", {"level": 2})

        assert plugin.config == {"level": 2}
        assert await manager.get_plugin_config("a") == {"level": 2}

    @pytest.mark.asyncio
    async def test_rejected_config_changes_nothing(self, manager):
        plugin = ConfigurableMockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a", {"level": 1})

        with pytest.raises(ConfigValidationFailure) as exc_info:
            await manager.update_plugin_config("a", {"bad": True})

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert plugin.applied == []
        assert await manager.get_plugin_config("a") == {"level": 1}

    @pytest.mark.asyncio
    async def test_set_config_failure(self, manager):
        plugin = ConfigurableMockPlugin("a", set_config_error=RuntimeError("read-only"))
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a", {"level": 1})

        with pytest.raises(ConfigApplyFailure):
            await manager.update_plugin_config("a", {"level": 2})
        assert await manager.get_plugin_config("a") == {"level": 1}

    @pytest.mark.asyncio
    async def test_change_hook_failure_rolls_back(self, manager):
        """A failing on_config_change re-applies the previous configuration."""
        plugin = LifecycleMockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a", {"level": 1})
        plugin.hook_error = RuntimeError("cannot reload")

        with pytest.raises(ConfigApplyFailure) as exc_info:
            await manager.update_plugin_config("a", {"level": 2})

        assert exc_info.value.__cause__ is plugin.hook_error
        assert plugin.applied == [{"level": 2}, {"level": 1}]
        assert plugin.config == {"level": 1}
        assert await manager.get_plugin_config("a") == {"level": 1}

    @pytest.mark.asyncio
    async def test_change_hook_runs_on_success(self, manager):
        plugin = LifecycleMockPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a")

        await manager.update_plugin_config("a", {"level": 3})

        assert plugin.hooks == ["on_enable", "on_config_change"]

    @pytest.mark.asyncio
    async def test_non_configurable_plugin_stores_config(self, manager):
        plugin = MockPlugin("a")
        await manager.register_plugin(plugin)

        await manager.update_plugin_config("a", {"anything": "goes"})

        assert await manager.get_plugin_config("a") == {"anything": "goes"}
        assert plugin.init_calls == 0

    @pytest.mark.asyncio
    async def test_unknown_plugin(self, manager):
        with pytest.raises(PluginNotFound):
            await manager.update_plugin_config("ghost", {})

    @pytest.mark.asyncio
    async def test_stored_config_is_a_copy(self, manager):
        await manager.register_plugin(MockPlugin("a"))
        config = {"level": 1}
        await manager.enable_plugin("a", config)
        config["level"] = 99

        assert await manager.get_plugin_config("a") == {"level": 1}

    @pytest.mark.asyncio
    async def test_change_hook_cannot_alter_previous_config(self, manager):
        """The old_config handed to on_config_change is not the stored configuration."""

        class MutatingPlugin(LifecycleMockPlugin):
            async def on_config_change(self, ctx, old_config, new_config):
                old_config["level"] = 99
                await super().on_config_change(ctx, old_config, new_config)

        plugin = MutatingPlugin("a")
        await manager.register_plugin(plugin)
        await manager.enable_plugin("a", {"level": 1})
        plugin.hook_error = RuntimeError("cannot reload")

        with pytest.raises(ConfigApplyFailure):
            await manager.update_plugin_config("a", {"level": 2})

        assert await manager.get_plugin_config("a") == {"level": 1}
        assert plugin.applied == [{"level": 2}, {"level": 1}]


class TestPluginConfigService:
    """Tests for the plugins.json startup file."""

    def test_defaults_when_missing(self, tmp_path):
        service = PluginConfigService(tmp_path / "plugins.json")
        assert service.get_enabled_list() == []
        assert service.get_plugin_config("hello") == {}
        assert service.settings.max_memory_mb == 100
        assert service.settings.health_check_interval is None

    def test_enable_disable_persist(self, tmp_path):
        """Disabling keeps the entry and its config, with enabled set to false."""
        path = tmp_path / "nested" / "plugins.json"
        service = PluginConfigService(path)

        service.enable("hello")
        service.enable("hello")
        service.enable("cluster-data")
        service.update_plugin_config("hello", {"greeting": "Hi"})
        service.disable("hello")

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [(p["name"], p["enabled"]) for p in saved["plugins"]] == [
            ("hello", False),
            ("cluster-data", True),
        ]
        assert saved["plugins"][0]["config"] == {"greeting": "Hi"}
        assert "pluginSettings" in saved

        reloaded = PluginConfigService(path)
        assert reloaded.is_enabled("cluster-data")
        assert not reloaded.is_enabled("hello")
        assert reloaded.get_enabled_list() == ["cluster-data"]

    def test_update_plugin_config(self, tmp_path):
        path = tmp_path / "plugins.json"
        service = PluginConfigService(path)
        service.update_plugin_config("hello", {"greeting": "Hi"})

        service.reload()
        assert service.get_plugin_config("hello") == {"greeting": "Hi"}
        assert not service.is_enabled("hello")

    def test_reads_camel_case_settings(self, tmp_path):
        path = tmp_path / "plugins.json"
        path.write_text(
            json.dumps({
                "plugins": [{"name": "hello", "enabled": True, "config": {"greeting": "Yo"}}],
                "pluginSettings": {
                    "enableAll": True,
                    "maxMemoryMB": 64,
                    "maxCPUPercent": 10.0,
                    "healthCheckInterval": 5,
                },
            }),
            encoding="utf-8",
        )

        service = PluginConfigService(path)

        assert service.is_enabled("anything")
        assert service.get_enabled_list() == ["hello"]
        assert service.settings.health_check_interval == 5
        limits = service.settings.resource_limits()
        assert limits.max_memory_bytes == 64 * 1024 * 1024
        assert limits.max_cpu_percent == 10.0

    def test_invalid_json_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "plugins.json"
        path.write_text("{not json", encoding="utf-8")

        service = PluginConfigService(path)

        assert service.get_enabled_list() == []

    def test_wrong_shape_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "plugins.json"
        path.write_text(json.dumps({"plugins": [{"enabled": True}]}), encoding="utf-8")

        service = PluginConfigService(path)

        assert service.get_enabled_list() == []
