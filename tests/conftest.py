"""
Pytest Configuration and Fixtures
=================================

Mock plugins and shared fixtures for the plugin core tests.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from s9s.plugins.context import PluginContext
from s9s.plugins.interface import HealthStatus, Info, Plugin, ViewInfo
from s9s.plugins.manager import PluginManager


class MockPlugin(Plugin):
    """Plugin double counting lifecycle calls.

    ``calls`` may be shared between plugins to observe cross-plugin ordering.
    """

    def __init__(
        self,
        name: str,
        requires: Optional[List[str]] = None,
        provides: Optional[List[str]] = None,
        calls: Optional[List[tuple]] = None,
        init_error: Optional[Exception] = None,
        start_error: Optional[Exception] = None,
        stop_error: Optional[Exception] = None,
    ):
        self.name = name
        self.requires = requires or []
        self.provides = provides or []
        self.calls = calls if calls is not None else []
        self.init_error = init_error
        self.start_error = start_error
        self.stop_error = stop_error
        self.healthy = True
        self.init_calls = 0
        self.start_calls = 0
        self.stop_calls = 0
        self.last_config: Optional[Dict[str, Any]] = None

    def get_info(self) -> Info:
        return Info(
            name=self.name,
            version="1.0.0",
            description=f"mock plugin {self.name}",
            requires=self.requires,
            provides=self.provides,
        )

    async def init(self, ctx: PluginContext, config: Dict[str, Any]) -> None:
        self.init_calls += 1
        self.last_config = config
        self.calls.append(("init", self.name))
        if self.init_error is not None:
            raise self.init_error

    async def start(self, ctx: PluginContext) -> None:
        self.start_calls += 1
        self.calls.append(("start", self.name))
        if self.start_error is not None:
            raise self.start_error

    async def stop(self, ctx: PluginContext) -> None:
        self.stop_calls += 1
        self.calls.append(("stop", self.name))
        if self.stop_error is not None:
            raise self.stop_error

    def health(self) -> HealthStatus:
        if self.healthy:
            return HealthStatus.ok()
        return HealthStatus.failing("mock failure")


class ConfigurableMockPlugin(MockPlugin):
    """Accepts any config without a ``bad`` key and records applied configs."""

    def __init__(self, name: str, set_config_error: Optional[Exception] = None, **kwargs):
        super().__init__(name, **kwargs)
        self.config: Dict[str, Any] = {}
        self.applied: List[Dict[str, Any]] = []
        self.set_config_error = set_config_error

    def get_config(self) -> Dict[str, Any]:
        return dict(self.config)

    def set_config(self, config: Dict[str, Any]) -> None:
        self.applied.append(dict(config))
        if self.set_config_error is not None:
            raise self.set_config_error
        self.config = dict(config)

    def validate_config(self, config: Dict[str, Any]) -> None:
        if "bad" in config:
            raise ValueError("bad key not allowed")

    def get_config_ui(self) -> Any:
        return None


class LifecycleMockPlugin(ConfigurableMockPlugin):
    """Configurable plugin with lifecycle hooks that can be made to fail."""

    def __init__(self, name: str, hook_error: Optional[Exception] = None, **kwargs):
        super().__init__(name, **kwargs)
        self.hook_error = hook_error
        self.hooks: List[str] = []

    async def on_enable(self, ctx: PluginContext) -> None:
        self.hooks.append("on_enable")
        if self.hook_error is not None:
            raise self.hook_error

    async def on_disable(self, ctx: PluginContext) -> None:
        self.hooks.append("on_disable")
        if self.hook_error is not None:
            raise self.hook_error

    async def on_config_change(
        self, ctx: PluginContext, old_config: Dict[str, Any], new_config: Dict[str, Any]
    ) -> None:
        self.hooks.append("on_config_change")
        if self.hook_error is not None:
            raise self.hook_error


class ViewMockPlugin(MockPlugin):
    """Provides a single view."""

    def get_views(self) -> List[ViewInfo]:
        return [ViewInfo(id=self.name, name=self.name.title())]

    async def create_view(self, ctx: PluginContext, view_id: str) -> Any:
        return None


class PriorityMockPlugin(MockPlugin):
    def __init__(self, name: str, priority: int, **kwargs):
        super().__init__(name, **kwargs)
        self.priority = priority

    def get_priority(self) -> int:
        return self.priority


@pytest.fixture
def manager():
    """Plugin manager with a short health interval"""
    return PluginManager(health_check_interval=0.1)


@pytest.fixture
def calls():
    """Shared call log for ordering assertions"""
    return []
