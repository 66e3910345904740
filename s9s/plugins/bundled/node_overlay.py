"""Node overlay plugin - adds a load column to the nodes view."""

from typing import Any, Dict, List, Optional

from s9s.plugins.bundled.cluster_data import ClusterDataPlugin, NodeSnapshot
from s9s.plugins.context import PluginContext
from s9s.plugins.interface import (
    CellStyle,
    ColumnDefinition,
    ConfigField,
    HealthStatus,
    Info,
    OverlayInfo,
    Plugin,
)


class NodeLoadOverlay:
    """Overlay rendering per-node CPU load as a percentage of its cores."""

    def __init__(self, plugin: "NodeOverlayPlugin"):
        self._plugin = plugin

    def get_id(self) -> str:
        return "node-load"

    def get_columns(self) -> List[ColumnDefinition]:
        return [ColumnDefinition(id="load", name="LOAD%", width=6, priority=50, align="right")]

    async def get_cell_data(self, ctx: PluginContext, view_id: str, row_id: Any, column_id: str) -> str:
        node = await self._plugin.lookup(ctx, row_id)
        if node is None or column_id != "load":
            return ""
        return f"{self._plugin.load_ratio(node) * 100:.0f}"

    async def get_cell_style(self, ctx: PluginContext, view_id: str, row_id: Any, column_id: str) -> CellStyle:
        node = await self._plugin.lookup(ctx, row_id)
        if node is None:
            return CellStyle()
        if node.state == "down":
            return CellStyle(foreground="gray", italic=True)
        if self._plugin.load_ratio(node) >= self._plugin.warn_load:
            return CellStyle(foreground="red", bold=True)
        return CellStyle(foreground="green")

    def should_refresh(self) -> bool:
        return True


class NodeOverlayPlugin(Plugin):
    """Overlay provider reading node data from the cluster-data plugin."""

    def __init__(self, data: ClusterDataPlugin):
        self._data = data
        self._active = False
        self.warn_load = 0.9

    def get_info(self) -> Info:
        return Info(
            name="node-overlay",
            version="1.0.0",
            description="CPU load column for the nodes view",
            author="s9s Team",
            license="MIT",
            requires=["cluster-data"],
            provides=["overlay:nodes"],
            config_schema={
                "warn_load": ConfigField(
                    type="float",
                    description="Load ratio at which the cell turns red",
                    default=0.9,
                ),
            },
        )

    async def init(self, ctx: PluginContext, config: Dict[str, Any]) -> None:
        warn_load = float(config.get("warn_load", 0.9))
        if not 0 < warn_load <= 1:
            raise ValueError("warn_load must be in (0, 1]")
        self.warn_load = warn_load

    async def start(self, ctx: PluginContext) -> None:
        self._active = True

    async def stop(self, ctx: PluginContext) -> None:
        self._active = False

    def health(self) -> HealthStatus:
        data_health = self._data.health()
        if not data_health.healthy:
            return HealthStatus(
                healthy=False,
                status="degraded",
                message=f"cluster-data unavailable: {data_health.message}",
            )
        return HealthStatus.ok()

    def get_overlays(self) -> List[OverlayInfo]:
        return [
            OverlayInfo(
                id="node-load",
                name="Node load",
                description="CPU load per node",
                target_views=["nodes"],
                priority=10,
            )
        ]

    async def create_overlay(self, ctx: PluginContext, overlay_id: str) -> NodeLoadOverlay:
        if overlay_id != "node-load":
            raise KeyError(f"unknown overlay {overlay_id}")
        return NodeLoadOverlay(self)

    async def lookup(self, ctx: PluginContext, node_name: str) -> Optional[NodeSnapshot]:
        nodes = await self._data.query(ctx, "nodes", {})
        return next((n for n in nodes if n.name == node_name), None)

    @staticmethod
    def load_ratio(node: NodeSnapshot) -> float:
        if node.cpus <= 0:
            return 0.0
        return node.cpu_load / node.cpus
