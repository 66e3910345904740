"""REPL core loop."""

import logging
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.panel import Panel

from s9s.cli.command_handler import CommandHandler
from s9s.constants import LOG_DIR, PLUGIN_CONFIG_FILE
from s9s.plugins.bundled import builtin_plugins
from s9s.plugins.config import PluginConfigService
from s9s.plugins.manager import PluginManager
from s9s.plugins.startup import load_all

logger = logging.getLogger(__name__)

# Global console
console = Console(
    legacy_windows=False,
    force_terminal=True,
    force_interactive=False,
    no_color=False,
    tab_size=4
)


class REPLRunner:
    """Interactive shell over a running plugin manager.

    Loads the bundled plugins on entry, supervises their health while the
    shell is open and shuts every plugin down on exit.
    """

    def __init__(self, health_check_interval: Optional[float] = None):
        self.config_service = PluginConfigService(PLUGIN_CONFIG_FILE)
        if health_check_interval is None:
            health_check_interval = self.config_service.settings.health_check_interval
        self.manager = PluginManager(health_check_interval=health_check_interval)
        self.command_handler = CommandHandler(self.manager, self.config_service)

    async def _startup(self):
        results = await load_all(self.manager, builtin_plugins(), self.config_service)
        for name, error in results.items():
            if error is not None:
                console.print(f"[red]✗ {name}: {error}[/red]")
        self.manager.start_health_checks()

    def _show_welcome(self):
        console.print(Panel.fit(
            "[bold cyan]s9s plugin shell[/bold cyan]\n"
            f"[green]Plugin config:[/green] {PLUGIN_CONFIG_FILE}\n"
            f"[green]Health interval:[/green] {self.manager.health_check_interval}s\n"
            "Type /help for help, /list to see plugins, /q to quit",
            border_style="blue"
        ))
        console.print()

    async def run(self):
        """Main loop"""
        LOG_DIR.mkdir(exist_ok=True)
        session = PromptSession(history=FileHistory(str(LOG_DIR / ".shell_history")))

        await self._startup()
        self._show_welcome()

        try:
            while True:
                try:
                    user_input = await session.prompt_async(HTML('<b>s9s></b> '))

                    if not user_input.strip():
                        continue

                    if not user_input.startswith("/"):
                        console.print("[dim]Commands start with /, type /help for help[/dim]\n")
                        continue

                    should_continue = await self.command_handler.handle(user_input.strip())
                    if not should_continue:
                        break

                except KeyboardInterrupt:
                    print("\n\033[33m(use /q to quit)\033[0m\n")
                    continue

                except EOFError:
                    print("\n\033[33mbye!\033[0m")
                    break
        finally:
            logger.info("Shell exiting, stopping plugins")
            await self.manager.stop()
