"""Shell command handler with command pattern."""

import json
from typing import Any, Dict, List

from rich.console import Console
from rich.table import Table

from s9s.plugins.config import PluginConfigService
from s9s.plugins.errors import PluginError
from s9s.plugins.manager import PluginManager

console = Console(
    legacy_windows=False,
    force_terminal=True,
    force_interactive=False,
    no_color=False,
    tab_size=4
)


def parse_config_args(pairs: List[str]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs; values are JSON when they parse as JSON.

    >>> parse_config_args(["warn_load=0.8", "name=gpu"])
    {'warn_load': 0.8, 'name': 'gpu'}
    """
    config: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"expected key=value, got {pair!r}")
        try:
            config[key] = json.loads(raw)
        except json.JSONDecodeError:
            config[key] = raw
    return config


class CommandHandler:
    """Dispatches slash commands against a live plugin manager."""

    def __init__(self, manager: PluginManager, config_service: PluginConfigService):
        self.manager = manager
        self.config_service = config_service
        self.commands = self._register_commands()

    def _register_commands(self) -> Dict[str, callable]:
        return {
            "/q": self._cmd_quit,
            "/quit": self._cmd_quit,
            "/exit": self._cmd_quit,
            "/list": self._cmd_list,
            "/enable": self._cmd_enable,
            "/disable": self._cmd_disable,
            "/state": self._cmd_state,
            "/config": self._cmd_config,
            "/views": self._cmd_views,
            "/overlays": self._cmd_overlays,
            "/order": self._cmd_order,
            "/health": self._cmd_health,
            "/help": self._cmd_help,
        }

    async def handle(self, cmd: str) -> bool:
        """Handle one command line.

        Returns:
            Whether the shell loop should continue
        """
        parts = cmd.split()
        handler = self.commands.get(parts[0]) if parts else None
        if handler is None:
            console.print(f"[red]Unknown command: {cmd}[/red]")
            console.print("[dim]Type /help for help[/dim]\n")
            return True

        try:
            return await handler(parts[1:])
        except PluginError as e:
            console.print(f"[red]✗ {e}[/red]\n")
        except ValueError as e:
            console.print(f"[red]✗ {e}[/red]\n")
        return True

    async def _cmd_quit(self, args: List[str]) -> bool:
        console.print("[yellow]bye![/yellow]")
        return False

    async def _cmd_list(self, args: List[str]) -> bool:
        table = Table(title="Plugins")
        table.add_column("Name", style="cyan")
        table.add_column("Version")
        table.add_column("Enabled")
        table.add_column("Running")
        table.add_column("Health")
        table.add_column("Restarts", justify="right")
        table.add_column("Requires")

        for entry in sorted(await self.manager.list_plugins(), key=lambda e: e.name):
            health = entry.state.health
            table.add_row(
                entry.name,
                entry.info.version,
                "✓" if entry.enabled else "",
                "✓" if entry.running else "",
                f"[{'green' if health.healthy else 'red'}]{health.status}[/]",
                str(entry.state.restart_count),
                ", ".join(entry.info.requires),
            )
        console.print(table)
        console.print()
        return True

    async def _cmd_enable(self, args: List[str]) -> bool:
        if not args:
            console.print("[red]Usage: /enable <name> [key=value ...][/red]\n")
            return True

        name = args[0]
        config = self.config_service.get_plugin_config(name)
        config.update(parse_config_args(args[1:]))
        await self.manager.enable_plugin(name, config)
        self.config_service.enable(name)
        console.print(f"[green]✓ Enabled {name}[/green]\n")
        return True

    async def _cmd_disable(self, args: List[str]) -> bool:
        if not args:
            console.print("[red]Usage: /disable <name>[/red]\n")
            return True

        await self.manager.disable_plugin(args[0])
        self.config_service.disable(args[0])
        console.print(f"[green]✓ Disabled {args[0]}[/green]\n")
        return True

    async def _cmd_state(self, args: List[str]) -> bool:
        if not args:
            console.print("[red]Usage: /state <name>[/red]\n")
            return True

        state = await self.manager.get_plugin_state(args[0])
        table = Table(title=args[0], show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Enabled", str(state.enabled))
        table.add_row("Running", str(state.running))
        table.add_row("Health", f"{state.health.status} - {state.health.message}")
        table.add_row("Restarts", str(state.restart_count))
        table.add_row("Started", state.start_time.isoformat() if state.start_time else "-")
        table.add_row("Last error", str(state.last_error) if state.last_error else "-")
        table.add_row("Config", json.dumps(await self.manager.get_plugin_config(args[0])))
        console.print(table)
        console.print()
        return True

    async def _cmd_config(self, args: List[str]) -> bool:
        if len(args) < 2:
            console.print("[red]Usage: /config <name> key=value [key=value ...][/red]\n")
            return True

        name = args[0]
        config = await self.manager.get_plugin_config(name)
        config.update(parse_config_args(args[1:]))
        await self.manager.update_plugin_config(name, config)
        self.config_service.update_plugin_config(name, config)
        console.print(f"[green]✓ Updated config for {name}[/green]\n")
        return True

    async def _cmd_views(self, args: List[str]) -> bool:
        table = Table(title="Plugin views")
        table.add_column("Plugin", style="cyan")
        table.add_column("View")
        table.add_column("Shortcut")
        table.add_column("Description")
        for plugin in await self.manager.get_view_plugins():
            for view in plugin.get_views():
                table.add_row(plugin.get_info().name, view.name, view.shortcut, view.description)
        console.print(table)
        console.print()
        return True

    async def _cmd_overlays(self, args: List[str]) -> bool:
        table = Table(title="Plugin overlays")
        table.add_column("Plugin", style="cyan")
        table.add_column("Overlay")
        table.add_column("Targets")
        table.add_column("Priority", justify="right")
        for plugin in await self.manager.get_overlay_plugins():
            for overlay in plugin.get_overlays():
                table.add_row(
                    plugin.get_info().name,
                    overlay.name,
                    ", ".join(overlay.target_views),
                    str(overlay.priority),
                )
        console.print(table)
        console.print()
        return True

    async def _cmd_order(self, args: List[str]) -> bool:
        order = self.manager.dependency_order()
        console.print(" → ".join(order) + "\n")
        return True

    async def _cmd_health(self, args: List[str]) -> bool:
        await self.manager.check_health()
        return await self._cmd_list(args)

    async def _cmd_help(self, args: List[str]) -> bool:
        console.print(
            "[bold]Commands[/bold]\n"
            "  /list                          list plugins and their state\n"
            "  /enable <name> [key=value ...] enable a plugin\n"
            "  /disable <name>                disable a plugin\n"
            "  /state <name>                  show runtime state\n"
            "  /config <name> key=value ...   update configuration\n"
            "  /views, /overlays              list running providers\n"
            "  /order                         dependency order\n"
            "  /health                        run a health sweep now\n"
            "  /q                             quit\n"
        )
        return True
