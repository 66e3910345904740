"""Plugins shipped with s9s, linked in rather than loaded from disk."""

from typing import List

from s9s.plugins.bundled.cluster_data import ClusterDataPlugin
from s9s.plugins.bundled.hello import HelloPlugin
from s9s.plugins.bundled.node_overlay import NodeOverlayPlugin
from s9s.plugins.interface import Plugin


def builtin_plugins() -> List[Plugin]:
    """Create one instance of every bundled plugin, wired together."""
    data = ClusterDataPlugin()
    return [data, HelloPlugin(), NodeOverlayPlugin(data)]


__all__ = ["ClusterDataPlugin", "HelloPlugin", "NodeOverlayPlugin", "builtin_plugins"]
