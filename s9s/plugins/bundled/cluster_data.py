"""Cluster data plugin - serves partition and node snapshots to other plugins."""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from s9s.plugins.context import PluginContext
from s9s.plugins.interface import (
    ConfigField,
    DataCallback,
    DataProviderInfo,
    HealthStatus,
    Info,
    Plugin,
    ResourceLimits,
    ResourceUsage,
)

logger = logging.getLogger(__name__)


class NodeSnapshot(BaseModel):
    """Point-in-time view of a compute node."""

    name: str
    partition: str
    state: str  # idle | mixed | allocated | down | drain
    cpus: int
    cpu_load: float


class PartitionSnapshot(BaseModel):
    name: str
    nodes: List[str]
    state: str = "up"


DEFAULT_NODES = [
    NodeSnapshot(name="cn001", partition="batch", state="allocated", cpus=64, cpu_load=61.2),
    NodeSnapshot(name="cn002", partition="batch", state="mixed", cpus=64, cpu_load=20.5),
    NodeSnapshot(name="cn003", partition="batch", state="idle", cpus=64, cpu_load=0.1),
    NodeSnapshot(name="gpu01", partition="gpu", state="down", cpus=32, cpu_load=0.0),
]


class ClusterDataPlugin(Plugin):
    """Data provider publishing node and partition snapshots.

    Subscribers receive the current snapshot on every refresh tick.
    """

    def __init__(self, nodes: Optional[List[NodeSnapshot]] = None):
        self._nodes = list(nodes if nodes is not None else DEFAULT_NODES)
        self._subscriptions: Dict[str, tuple[str, DataCallback]] = {}
        self._refresh_interval = 10.0
        self._task: Optional[asyncio.Task] = None
        self._limits = ResourceLimits(max_tasks=1, max_connections=0)
        self._logger = logger

    def get_info(self) -> Info:
        return Info(
            name="cluster-data",
            version="1.0.0",
            description="Partition and node snapshots for other plugins",
            author="s9s Team",
            license="MIT",
            provides=["data:nodes", "data:partitions"],
            config_schema={
                "refresh_interval": ConfigField(
                    type="float",
                    description="Seconds between subscriber refreshes",
                    default=10.0,
                ),
            },
        )

    async def init(self, ctx: PluginContext, config: Dict[str, Any]) -> None:
        self._logger = ctx.get_logger()
        self._refresh_interval = float(config.get("refresh_interval", 10.0))
        if self._refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")

    async def start(self, ctx: PluginContext) -> None:
        self._task = asyncio.get_running_loop().create_task(self._refresh_loop(ctx))

    async def stop(self, ctx: PluginContext) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def health(self) -> HealthStatus:
        if self._task is None:
            return HealthStatus.failing("refresh loop not started")
        if self._task.done():
            return HealthStatus.failing("refresh loop exited")
        return HealthStatus.ok(f"{len(self._subscriptions)} subscriber(s)")

    def get_priority(self) -> int:
        return 0

    def get_data_providers(self) -> List[DataProviderInfo]:
        return [
            DataProviderInfo(
                id="nodes",
                name="Nodes",
                description="Compute node snapshots",
                query_params={
                    "partition": ConfigField(type="string", description="Filter by partition"),
                    "state": ConfigField(type="string", description="Filter by node state"),
                },
            ),
            DataProviderInfo(id="partitions", name="Partitions", description="Partition snapshots"),
        ]

    async def subscribe(self, ctx: PluginContext, provider_id: str, callback: DataCallback) -> str:
        self._check_provider(provider_id)
        subscription_id = uuid.uuid4().hex
        self._subscriptions[subscription_id] = (provider_id, callback)
        return subscription_id

    async def unsubscribe(self, ctx: PluginContext, subscription_id: str) -> None:
        if self._subscriptions.pop(subscription_id, None) is None:
            raise KeyError(f"unknown subscription {subscription_id}")

    async def query(self, ctx: PluginContext, provider_id: str, params: Dict[str, Any]) -> Any:
        self._check_provider(provider_id)
        if provider_id == "partitions":
            return self.partitions()

        nodes = self._nodes
        if params.get("partition"):
            nodes = [n for n in nodes if n.partition == params["partition"]]
        if params.get("state"):
            nodes = [n for n in nodes if n.state == params["state"]]
        return list(nodes)

    def partitions(self) -> List[PartitionSnapshot]:
        by_partition: Dict[str, List[str]] = {}
        for node in self._nodes:
            by_partition.setdefault(node.partition, []).append(node.name)
        return [PartitionSnapshot(name=p, nodes=names) for p, names in sorted(by_partition.items())]

    def get_resource_usage(self) -> ResourceUsage:
        running = 1 if self._task is not None and not self._task.done() else 0
        return ResourceUsage(tasks=running, cache_size=len(self._nodes))

    def get_resource_limits(self) -> ResourceLimits:
        return self._limits

    def set_resource_limits(self, limits: ResourceLimits) -> None:
        self._limits = limits

    def _check_provider(self, provider_id: str) -> None:
        if provider_id not in ("nodes", "partitions"):
            raise KeyError(f"unknown data provider {provider_id}")

    def _publish(self) -> None:
        for provider_id, callback in list(self._subscriptions.values()):
            data = self.partitions() if provider_id == "partitions" else list(self._nodes)
            try:
                callback(data, None)
            except Exception as e:
                self._logger.warning(f"Subscriber callback for {provider_id} failed: {e}")

    async def _refresh_loop(self, ctx: PluginContext) -> None:
        while not ctx.cancelled:
            self._publish()
            try:
                await asyncio.wait_for(ctx.wait_cancelled(), timeout=self._refresh_interval)
            except asyncio.TimeoutError:
                continue
