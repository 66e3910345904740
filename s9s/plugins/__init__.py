"""Plugin lifecycle core for s9s.

Imports are lazy so that lightweight consumers (e.g. the startup config
service used by manage_plugins.py) do not pull in the whole manager.
"""

__all__ = [
    "Plugin",
    "Info",
    "ConfigField",
    "HealthStatus",
    "PluginContext",
    "Capabilities",
    "PluginRegistry",
    "RegistrationMetadata",
    "PluginLifecycle",
    "HealthSupervisor",
    "PluginManager",
    "PluginState",
    "PluginEntry",
    "PluginConfigService",
    "RWLock",
    "load_all",
]


def __getattr__(name):
    if name in ("Plugin", "Info", "ConfigField", "HealthStatus"):
        from s9s.plugins import interface
        return getattr(interface, name)
    if name == "PluginContext":
        from s9s.plugins.context import PluginContext
        return PluginContext
    if name == "Capabilities":
        from s9s.plugins.capabilities import Capabilities
        return Capabilities
    if name in ("PluginRegistry", "RegistrationMetadata"):
        from s9s.plugins import registry
        return getattr(registry, name)
    if name == "PluginLifecycle":
        from s9s.plugins.lifecycle import PluginLifecycle
        return PluginLifecycle
    if name == "HealthSupervisor":
        from s9s.plugins.health import HealthSupervisor
        return HealthSupervisor
    if name in ("PluginManager", "PluginState", "PluginEntry"):
        from s9s.plugins import manager
        return getattr(manager, name)
    if name == "PluginConfigService":
        from s9s.plugins.config import PluginConfigService
        return PluginConfigService
    if name == "RWLock":
        from s9s.plugins.locks import RWLock
        return RWLock
    if name == "load_all":
        from s9s.plugins.startup import load_all
        return load_all
    raise AttributeError(f"module 's9s.plugins' has no attribute {name!r}")
