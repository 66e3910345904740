"""Plugin interfaces - the mandatory lifecycle contract and optional capabilities."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Awaitable,
    Dict,
    List,
    Literal,
    Optional,
    Protocol,
    TYPE_CHECKING,
    runtime_checkable,
)

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from s9s.plugins.context import PluginContext


ConfigFieldType = Literal["string", "int", "bool", "float", "array", "object"]


class ConfigField(BaseModel):
    """Describes a single configuration field of a plugin."""

    type: ConfigFieldType = Field(..., description="Value type of the field")
    description: str = Field(default="", description="Human-readable description")
    default: Any = Field(default=None, description="Default value")
    required: bool = Field(default=False, description="Whether the field must be set")
    validation: str = Field(default="", description="Regex or validation rule")


class Info(BaseModel):
    """Static plugin metadata, read once at registration."""

    name: str = Field(..., min_length=1, description="Unique plugin name")
    version: str = Field(..., min_length=1, description="Plugin version")
    description: str = Field(..., min_length=1, description="Plugin description")
    author: str = Field(default="", description="Plugin author")
    license: str = Field(default="", description="License identifier")
    requires: List[str] = Field(
        default_factory=list,
        description="Names of plugins that must be running before this one is enabled",
    )
    provides: List[str] = Field(default_factory=list, description="Capability tags provided")
    config_schema: Dict[str, ConfigField] = Field(
        default_factory=dict,
        description="Configuration fields accepted by the plugin",
    )


@dataclass
class HealthStatus:
    """Health report of a plugin."""

    healthy: bool
    status: str  # "healthy" | "degraded" | "unhealthy" | "initialized"
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "") -> "HealthStatus":
        return cls(healthy=True, status="healthy", message=message)

    @classmethod
    def failing(cls, message: str = "", details: Optional[Dict[str, Any]] = None) -> "HealthStatus":
        return cls(healthy=False, status="unhealthy", message=message, details=details or {})


class Plugin(ABC):
    """Abstract base class every plugin must implement.

    The manager drives the lifecycle: init → start → (health polling) → stop.
    Optional capabilities are picked up structurally, see the protocols below.
    """

    @abstractmethod
    def get_info(self) -> Info:
        """Return plugin metadata."""
        ...

    @abstractmethod
    async def init(self, ctx: PluginContext, config: Dict[str, Any]) -> None:
        """Initialize the plugin with its configuration.

        May be called again after a failed enable attempt.
        """
        ...

    @abstractmethod
    async def start(self, ctx: PluginContext) -> None:
        """Start background work."""
        ...

    @abstractmethod
    async def stop(self, ctx: PluginContext) -> None:
        """Stop background work and release resources."""
        ...

    @abstractmethod
    def health(self) -> HealthStatus:
        """Return the current health of the plugin."""
        ...


# ============================================================================
# Value types shared by capabilities
# ============================================================================

@dataclass
class ViewInfo:
    id: str
    name: str
    description: str = ""
    icon: str = ""
    shortcut: str = ""
    category: str = ""  # monitoring, management, ...


@dataclass
class OverlayInfo:
    id: str
    name: str
    description: str = ""
    target_views: List[str] = field(default_factory=list)
    priority: int = 0  # higher priority overlays render last


@dataclass
class ColumnDefinition:
    id: str
    name: str
    width: int = 0
    priority: int = 0
    align: str = "left"  # left | center | right


@dataclass
class CellStyle:
    foreground: str = ""
    background: str = ""
    bold: bool = False
    italic: bool = False
    underline: bool = False


@dataclass
class DataProviderInfo:
    id: str
    name: str
    description: str = ""
    schema: Dict[str, Any] = field(default_factory=dict)
    query_params: Dict[str, ConfigField] = field(default_factory=dict)


@dataclass
class HookInfo:
    id: str
    name: str
    description: str = ""
    parameters: Dict[str, ConfigField] = field(default_factory=dict)


@dataclass
class ResourceUsage:
    memory_bytes: int = 0
    cpu_percent: float = 0.0
    tasks: int = 0
    connections: int = 0
    cache_size: int = 0


@dataclass
class ResourceLimits:
    max_memory_bytes: int = 0
    max_cpu_percent: float = 0.0
    max_tasks: int = 0
    max_connections: int = 0
    max_cache_size: int = 0


DataCallback = Callable[[Any, Optional[BaseException]], None]
HookCallback = Callable[["PluginContext", Dict[str, Any]], Awaitable[None]]


# ============================================================================
# Instances created by providers
# ============================================================================

@runtime_checkable
class View(Protocol):
    """A view instance mounted by the host UI."""

    def get_id(self) -> str: ...

    def get_name(self) -> str: ...

    def get_primitive(self) -> Any: ...

    async def update(self, ctx: PluginContext) -> None: ...

    def handle_key(self, key: str) -> bool: ...

    def get_help(self) -> str: ...


@runtime_checkable
class Overlay(Protocol):
    """Extra columns and cell styling layered onto an existing view."""

    def get_id(self) -> str: ...

    def get_columns(self) -> List[ColumnDefinition]: ...

    async def get_cell_data(self, ctx: PluginContext, view_id: str, row_id: Any, column_id: str) -> str: ...

    async def get_cell_style(self, ctx: PluginContext, view_id: str, row_id: Any, column_id: str) -> CellStyle: ...

    def should_refresh(self) -> bool: ...


# ============================================================================
# Optional capabilities
# ============================================================================

@runtime_checkable
class ViewProvider(Protocol):
    def get_views(self) -> List[ViewInfo]: ...

    async def create_view(self, ctx: PluginContext, view_id: str) -> View: ...


@runtime_checkable
class OverlayProvider(Protocol):
    def get_overlays(self) -> List[OverlayInfo]: ...

    async def create_overlay(self, ctx: PluginContext, overlay_id: str) -> Overlay: ...


@runtime_checkable
class DataProvider(Protocol):
    def get_data_providers(self) -> List[DataProviderInfo]: ...

    async def subscribe(self, ctx: PluginContext, provider_id: str, callback: DataCallback) -> str: ...

    async def unsubscribe(self, ctx: PluginContext, subscription_id: str) -> None: ...

    async def query(self, ctx: PluginContext, provider_id: str, params: Dict[str, Any]) -> Any: ...


@runtime_checkable
class Configurable(Protocol):
    def get_config(self) -> Dict[str, Any]: ...

    def set_config(self, config: Dict[str, Any]) -> None: ...

    def validate_config(self, config: Dict[str, Any]) -> None: ...

    def get_config_ui(self) -> Any: ...


@runtime_checkable
class Hookable(Protocol):
    def get_hooks(self) -> List[HookInfo]: ...

    def register_hook(self, hook_id: str, callback: HookCallback) -> None: ...


@runtime_checkable
class LifecycleAware(Protocol):
    async def on_enable(self, ctx: PluginContext) -> None: ...

    async def on_disable(self, ctx: PluginContext) -> None: ...

    async def on_config_change(
        self, ctx: PluginContext, old_config: Dict[str, Any], new_config: Dict[str, Any]
    ) -> None: ...


@runtime_checkable
class Prioritizable(Protocol):
    def get_priority(self) -> int:
        """Higher priority means later initialization."""
        ...


@runtime_checkable
class ResourceManager(Protocol):
    def get_resource_usage(self) -> ResourceUsage: ...

    def get_resource_limits(self) -> ResourceLimits: ...

    def set_resource_limits(self, limits: ResourceLimits) -> None: ...
