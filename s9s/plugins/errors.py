"""Plugin system exceptions."""

from typing import Optional


class PluginError(Exception):
    """Base exception for plugin lifecycle errors."""

    def __init__(self, message: str = "", plugin: Optional[str] = None):
        super().__init__(message)
        self.plugin = plugin


class DuplicateRegistration(PluginError):
    """A plugin with the same name is already registered."""

    def __init__(self, plugin: str):
        super().__init__(f"plugin {plugin} already registered", plugin=plugin)


class InvalidPluginInfo(PluginError):
    """Plugin metadata failed validation at registration."""
    pass


class PluginNotFound(PluginError):
    """No plugin is registered under the given name."""

    def __init__(self, plugin: str):
        super().__init__(f"plugin {plugin} not found", plugin=plugin)


class AlreadyEnabled(PluginError):
    def __init__(self, plugin: str):
        super().__init__(f"plugin {plugin} already enabled", plugin=plugin)


class NotEnabled(PluginError):
    def __init__(self, plugin: str):
        super().__init__(f"plugin {plugin} not enabled", plugin=plugin)


class MissingDependency(PluginError):
    """A required plugin is not registered or not running."""

    def __init__(self, plugin: str, dependency: str, message: Optional[str] = None):
        super().__init__(
            message or f"required plugin {dependency} is not running",
            plugin=plugin,
        )
        self.dependency = dependency


class DependencyInUse(PluginError):
    """An enabled plugin still requires the plugin being disabled."""

    def __init__(self, plugin: str, dependent: str):
        super().__init__(f"plugin {plugin} is required by {dependent}", plugin=plugin)
        self.dependent = dependent


class DependencyCycle(PluginError):
    """The Requires graph contains a cycle."""

    def __init__(self, plugins: list[str]):
        super().__init__(
            f"circular dependency detected in plugins: {', '.join(sorted(plugins))}"
        )
        self.plugins = plugins


class InitializationFailure(PluginError):
    pass


class StartFailure(PluginError):
    pass


class ConfigValidationFailure(PluginError):
    pass


class ConfigApplyFailure(PluginError):
    """Applying a configuration failed; the previous one was restored."""
    pass


class HookFailure(PluginError):
    """A best-effort lifecycle hook raised. Logged, never propagated."""

    def __init__(self, plugin: str, hook: str, cause: BaseException):
        super().__init__(f"plugin {plugin} {hook} hook failed: {cause}", plugin=plugin)
        self.hook = hook
        self.cause = cause
