"""Capability table - optional plugin interfaces, probed once at registration."""

from dataclasses import dataclass, fields
from typing import List

from s9s.plugins.interface import (
    Configurable,
    DataProvider,
    Hookable,
    LifecycleAware,
    OverlayProvider,
    Plugin,
    Prioritizable,
    ResourceManager,
    ViewProvider,
)


@dataclass(frozen=True)
class Capabilities:
    """Which optional interfaces a plugin instance satisfies."""

    view: bool = False
    overlay: bool = False
    data: bool = False
    configurable: bool = False
    hookable: bool = False
    lifecycle: bool = False
    prioritizable: bool = False
    resources: bool = False

    @classmethod
    def probe(cls, plugin: Plugin) -> "Capabilities":
        return cls(
            view=isinstance(plugin, ViewProvider),
            overlay=isinstance(plugin, OverlayProvider),
            data=isinstance(plugin, DataProvider),
            configurable=isinstance(plugin, Configurable),
            hookable=isinstance(plugin, Hookable),
            lifecycle=isinstance(plugin, LifecycleAware),
            prioritizable=isinstance(plugin, Prioritizable),
            resources=isinstance(plugin, ResourceManager),
        )

    def names(self) -> List[str]:
        """Names of the capabilities that are present."""
        return [f.name for f in fields(self) if getattr(self, f.name)]
