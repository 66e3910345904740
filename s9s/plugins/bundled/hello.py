"""Hello plugin - example view provider with runtime configuration."""

import logging
from typing import Any, Dict, List

from s9s.plugins.context import PluginContext
from s9s.plugins.interface import (
    ConfigField,
    HealthStatus,
    HookCallback,
    HookInfo,
    Info,
    Plugin,
    ViewInfo,
)

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hello from s9s!"


class HelloView:
    """A single-panel view showing the configured greeting."""

    def __init__(self, plugin: "HelloPlugin"):
        self._plugin = plugin
        self._text = ""

    def get_id(self) -> str:
        return "hello"

    def get_name(self) -> str:
        return "Hello"

    def get_primitive(self) -> Any:
        return self._text

    async def update(self, ctx: PluginContext) -> None:
        self._text = self._plugin.greeting

    def handle_key(self, key: str) -> bool:
        if key == "r":
            self._text = self._plugin.greeting
            return True
        return False

    def get_help(self) -> str:
        return "r=Refresh greeting"


class HelloPlugin(Plugin):
    """Example plugin demonstrating views, config, hooks and lifecycle callbacks."""

    def __init__(self):
        self._config: Dict[str, Any] = {"greeting": DEFAULT_GREETING}
        self._hooks: Dict[str, List[HookCallback]] = {"greeting_changed": []}
        self._started = False

    @property
    def greeting(self) -> str:
        return self._config.get("greeting", DEFAULT_GREETING)

    def get_info(self) -> Info:
        return Info(
            name="hello",
            version="1.0.0",
            description="Example Hello World plugin for s9s",
            author="s9s Team",
            license="MIT",
            provides=["view:hello"],
            config_schema={
                "greeting": ConfigField(
                    type="string",
                    description="Text shown in the hello view",
                    default=DEFAULT_GREETING,
                ),
            },
        )

    async def init(self, ctx: PluginContext, config: Dict[str, Any]) -> None:
        self.validate_config(config)
        self._config = {"greeting": DEFAULT_GREETING, **config}

    async def start(self, ctx: PluginContext) -> None:
        self._started = True

    async def stop(self, ctx: PluginContext) -> None:
        self._started = False

    def health(self) -> HealthStatus:
        if not self._started:
            return HealthStatus.failing("not started")
        return HealthStatus.ok()

    # View provider

    def get_views(self) -> List[ViewInfo]:
        return [
            ViewInfo(
                id="hello",
                name="Hello",
                description="Greeting panel",
                icon="👋",
                shortcut="H",
                category="examples",
            )
        ]

    async def create_view(self, ctx: PluginContext, view_id: str) -> HelloView:
        if view_id != "hello":
            raise KeyError(f"unknown view {view_id}")
        view = HelloView(self)
        await view.update(ctx)
        return view

    # Configurable

    def get_config(self) -> Dict[str, Any]:
        return dict(self._config)

    def set_config(self, config: Dict[str, Any]) -> None:
        self._config = {"greeting": DEFAULT_GREETING, **config}

    def validate_config(self, config: Dict[str, Any]) -> None:
        greeting = config.get("greeting", DEFAULT_GREETING)
        if not isinstance(greeting, str) or not greeting.strip():
            raise ValueError("greeting must be a non-empty string")

    def get_config_ui(self) -> Any:
        return None

    # Hookable

    def get_hooks(self) -> List[HookInfo]:
        return [
            HookInfo(
                id="greeting_changed",
                name="Greeting changed",
                description="Fired after the greeting is reconfigured",
                parameters={"greeting": ConfigField(type="string")},
            )
        ]

    def register_hook(self, hook_id: str, callback: HookCallback) -> None:
        if hook_id not in self._hooks:
            raise KeyError(f"unknown hook {hook_id}")
        self._hooks[hook_id].append(callback)

    # Lifecycle aware

    async def on_enable(self, ctx: PluginContext) -> None:
        ctx.get_logger().info(f"Hello plugin enabled: {self.greeting}")

    async def on_disable(self, ctx: PluginContext) -> None:
        ctx.get_logger().info("Hello plugin disabled")

    async def on_config_change(
        self, ctx: PluginContext, old_config: Dict[str, Any], new_config: Dict[str, Any]
    ) -> None:
        for callback in self._hooks["greeting_changed"]:
            await callback(ctx, {"greeting": self.greeting})
