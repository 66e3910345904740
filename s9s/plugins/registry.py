"""Plugin registry - name-keyed store of registered plugin instances."""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Dict, List

from pydantic import ValidationError

from s9s.plugins.capabilities import Capabilities
from s9s.plugins.errors import (
    DependencyCycle,
    DuplicateRegistration,
    InvalidPluginInfo,
    MissingDependency,
    PluginNotFound,
)
from s9s.plugins.interface import Info, Plugin

logger = logging.getLogger(__name__)


@dataclass
class RegistrationMetadata:
    """Bookkeeping recorded for each registered plugin."""

    registration_time: float
    load_order: int
    source: str = "builtin"  # "builtin" | "external"
    path: str = ""
    checksum: str = ""


class PluginRegistry:
    """Central registry for all plugins.

    Safe to use from several threads; every accessor takes the same lock.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._plugins: Dict[str, Plugin] = {}
        self._infos: Dict[str, Info] = {}
        self._metadata: Dict[str, RegistrationMetadata] = {}
        self._capabilities: Dict[str, Capabilities] = {}
        self._provides: Dict[str, List[str]] = {}  # capability tag -> plugin names
        self._requires: Dict[str, List[str]] = {}  # plugin -> required plugins
        self._load_counter = 0

    def register(self, plugin: Plugin, source: str = "builtin") -> Info:
        """Register a plugin instance.

        Returns:
            The validated plugin Info

        Raises:
            TypeError: plugin does not implement the Plugin interface
            InvalidPluginInfo: metadata is missing or malformed
            DuplicateRegistration: the name is already taken
        """
        if not isinstance(plugin, Plugin):
            raise TypeError(f"{type(plugin).__name__} does not implement Plugin")

        try:
            info = plugin.get_info()
        except ValidationError as e:
            raise InvalidPluginInfo(f"invalid plugin info: {e}") from e
        if not isinstance(info, Info):
            raise InvalidPluginInfo(
                f"get_info() returned {type(info).__name__}, expected Info"
            )

        with self._lock:
            if info.name in self._plugins:
                raise DuplicateRegistration(info.name)

            self._load_counter += 1
            self._plugins[info.name] = plugin
            self._infos[info.name] = info
            self._metadata[info.name] = RegistrationMetadata(
                registration_time=time.time(),
                load_order=self._load_counter,
                source=source,
            )
            self._capabilities[info.name] = Capabilities.probe(plugin)

            for tag in info.provides:
                self._provides.setdefault(tag, []).append(info.name)
            if info.requires:
                self._requires[info.name] = list(info.requires)

        logger.info(f"Registered plugin: {info.name} v{info.version} ({source})")
        return info

    def unregister(self, name: str) -> Plugin:
        """Remove a plugin from the registry."""
        with self._lock:
            plugin = self._plugins.pop(name, None)
            if plugin is None:
                raise PluginNotFound(name)

            info = self._infos.pop(name)
            self._metadata.pop(name, None)
            self._capabilities.pop(name, None)
            self._requires.pop(name, None)

            for tag in info.provides:
                providers = self._provides.get(tag, [])
                if name in providers:
                    providers.remove(name)
                if not providers:
                    self._provides.pop(tag, None)

        logger.info(f"Unregistered plugin: {name}")
        return plugin

    def get(self, name: str) -> Plugin:
        """Get a plugin by name."""
        with self._lock:
            plugin = self._plugins.get(name)
        if plugin is None:
            raise PluginNotFound(name)
        return plugin

    def get_info(self, name: str) -> Info:
        """Get the Info captured when the plugin was registered."""
        with self._lock:
            info = self._infos.get(name)
        if info is None:
            raise PluginNotFound(name)
        return info

    def capabilities(self, name: str) -> Capabilities:
        """Get the capability table probed at registration."""
        with self._lock:
            caps = self._capabilities.get(name)
        if caps is None:
            raise PluginNotFound(name)
        return caps

    def list(self) -> List[Plugin]:
        """Get all registered plugins, in registration order."""
        with self._lock:
            names = sorted(self._plugins, key=lambda n: self._metadata[n].load_order)
            return [self._plugins[n] for n in names]

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._plugins, key=lambda n: self._metadata[n].load_order)

    def get_by_capability(self, tag: str) -> List[Plugin]:
        """Get all plugins that declare a capability tag in Info.provides."""
        with self._lock:
            return [self._plugins[n] for n in self._provides.get(tag, []) if n in self._plugins]

    def get_capabilities(self) -> List[str]:
        """Get all provided capability tags, sorted."""
        with self._lock:
            return sorted(self._provides)

    def get_metadata(self, name: str) -> RegistrationMetadata:
        with self._lock:
            metadata = self._metadata.get(name)
        if metadata is None:
            raise PluginNotFound(name)
        return metadata

    def set_metadata(self, name: str, metadata: RegistrationMetadata) -> None:
        with self._lock:
            if name not in self._plugins:
                raise PluginNotFound(name)
            self._metadata[name] = metadata

    def has(self, name: str) -> bool:
        """Check if a plugin is registered."""
        with self._lock:
            return name in self._plugins

    def count(self) -> int:
        """Get total number of registered plugins."""
        with self._lock:
            return len(self._plugins)

    def get_dependency_order(self) -> List[str]:
        """Return plugin names ordered so that every plugin follows its requirements.

        Ties are broken by priority (lower first) and then by name.

        Raises:
            MissingDependency: a plugin requires a name that is not registered
            DependencyCycle: the requirements form a cycle
        """
        with self._lock:
            dependents: Dict[str, List[str]] = {name: [] for name in self._plugins}
            in_degree: Dict[str, int] = {name: 0 for name in self._plugins}

            for name, deps in self._requires.items():
                for dep in deps:
                    if dep not in self._plugins:
                        raise MissingDependency(
                            name, dep, f"plugin {name} requires non-existent plugin {dep}"
                        )
                    dependents[dep].append(name)
                    in_degree[name] += 1

            queue = deque(self._by_priority(n for n, d in in_degree.items() if d == 0))
            order: List[str] = []
            while queue:
                current = queue.popleft()
                order.append(current)
                for neighbor in self._by_priority(dependents[current]):
                    in_degree[neighbor] -= 1
                    if in_degree[neighbor] == 0:
                        queue.append(neighbor)

            if len(order) != len(self._plugins):
                raise DependencyCycle([n for n in self._plugins if n not in order])
            return order

    def validate_dependencies(self) -> None:
        """Check that every requirement exists and that there are no cycles."""
        self.get_dependency_order()

    def _by_priority(self, names) -> List[str]:
        return sorted(names, key=lambda n: (self._priority(n), n))

    def _priority(self, name: str) -> int:
        if not self._capabilities[name].prioritizable:
            return 0
        return self._plugins[name].get_priority()
