"""Tests for the plugin shell command handler."""

import pytest

from s9s.cli.command_handler import CommandHandler, parse_config_args
from s9s.plugins.bundled import builtin_plugins
from s9s.plugins.config import PluginConfigService


class TestParseConfigArgs:
    """Tests for parse_config_args."""

    def test_json_values(self):
        assert parse_config_args(["a=1", "b=true", "c=[1, 2]"]) == {"a": 1, "b": True, "c": [1, 2]}

    def test_plain_strings(self):
        assert parse_config_args(["greeting=hi"]) == {"greeting": "hi"}
        assert parse_config_args(["greeting="]) == {"greeting": ""}

    def test_missing_separator(self):
        with pytest.raises(ValueError):
            parse_config_args(["greeting"])


class TestCommandHandler:
    """Tests for CommandHandler against a live manager."""

    @pytest.fixture
    async def handler(self, manager, tmp_path):
        for plugin in builtin_plugins():
            await manager.register_plugin(plugin)
        yield CommandHandler(manager, PluginConfigService(tmp_path / "plugins.json"))
        await manager.stop()

    @pytest.mark.asyncio
    async def test_quit(self, handler):
        assert await handler.handle("/q") is False

    @pytest.mark.asyncio
    async def test_unknown_command_continues(self, handler):
        assert await handler.handle("/nope") is True

    @pytest.mark.asyncio
    async def test_enable_persists_to_startup_file(self, handler):
        assert await handler.handle("/enable hello greeting=Hey")

        state = await handler.manager.get_plugin_state("hello")
        assert state.running
        assert await handler.manager.get_plugin_config("hello") == {"greeting": "Hey"}
        assert handler.config_service.is_enabled("hello")

    @pytest.mark.asyncio
    async def test_plugin_errors_are_reported(self, handler):
        """Manager errors are printed, not raised, and the loop continues."""
        assert await handler.handle("/enable node-overlay")
        assert not (await handler.manager.get_plugin_state("node-overlay")).enabled
        assert not handler.config_service.is_enabled("node-overlay")

    @pytest.mark.asyncio
    async def test_config_updates_manager_and_file(self, handler):
        await handler.handle("/enable hello")
        await handler.handle("/config hello greeting=Salut")

        assert await handler.manager.get_plugin_config("hello") == {"greeting": "Salut"}
        assert handler.config_service.get_plugin_config("hello") == {"greeting": "Salut"}

    @pytest.mark.asyncio
    async def test_read_only_commands(self, handler):
        await handler.handle("/enable cluster-data")
        for cmd in ["/list", "/state cluster-data", "/views", "/overlays", "/order", "/health", "/help"]:
            assert await handler.handle(cmd) is True
