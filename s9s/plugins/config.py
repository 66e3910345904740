"""Plugin startup file - which plugins the host enables, and with what settings.

File format (JSON, camelCase keys):

    {
        "plugins": [
            {"name": "cluster-data", "enabled": true, "config": {"refresh_interval": 5}},
            {"name": "node-overlay", "enabled": true, "config": {"warn_load": 0.8}}
        ],
        "pluginSettings": {
            "enableAll": false,
            "maxMemoryMB": 100,
            "maxCPUPercent": 25.0,
            "healthCheckInterval": 30
        }
    }

The manager never reads or writes this file; it is host preference only.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from s9s.plugins.interface import ResourceLimits

logger = logging.getLogger(__name__)


class PluginStartupEntry(BaseModel):
    """One plugin listed in the startup file."""

    name: str = Field(..., min_length=1)
    enabled: bool = False
    path: str = Field(default="", description="Reserved for externally built plugins")
    config: Dict[str, Any] = Field(default_factory=dict)


class PluginSettings(BaseModel):
    """Settings applied to every plugin."""

    model_config = ConfigDict(populate_by_name=True)

    enable_all: bool = Field(default=False, alias="enableAll")
    max_memory_mb: int = Field(default=100, ge=0, alias="maxMemoryMB")
    max_cpu_percent: float = Field(default=25.0, ge=0, alias="maxCPUPercent")
    health_check_interval: Optional[float] = Field(
        default=None, gt=0, alias="healthCheckInterval"
    )

    def resource_limits(self) -> ResourceLimits:
        """Per-plugin limits handed to resource-managing plugins."""
        return ResourceLimits(
            max_memory_bytes=self.max_memory_mb * 1024 * 1024,
            max_cpu_percent=self.max_cpu_percent,
        )


class PluginStartupFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plugins: List[PluginStartupEntry] = Field(default_factory=list)
    plugin_settings: PluginSettings = Field(default_factory=PluginSettings, alias="pluginSettings")


class PluginConfigService:
    """Reads and edits the plugin startup file.

    Disabling a plugin keeps its entry (and configuration) in the file with
    ``enabled: false``.
    """

    def __init__(self, config_file: Path):
        self.config_file = config_file
        self._data: PluginStartupFile = self._load()

    def _load(self) -> PluginStartupFile:
        """Load the file, falling back to defaults if missing or invalid."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    return PluginStartupFile.model_validate(json.load(f))
            except (json.JSONDecodeError, ValidationError, IOError) as e:
                logger.error(f"Error loading plugin config {self.config_file}: {e}")

        return PluginStartupFile()

    def _save(self) -> None:
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            f.write(self._data.model_dump_json(by_alias=True, indent=2))
        logger.debug(f"Saved plugin config to {self.config_file}")

    def _entry(self, name: str) -> Optional[PluginStartupEntry]:
        return next((e for e in self._data.plugins if e.name == name), None)

    @property
    def settings(self) -> PluginSettings:
        return self._data.plugin_settings

    def is_enabled(self, name: str) -> bool:
        """True if the plugin should be enabled at startup."""
        if self.settings.enable_all:
            return True
        entry = self._entry(name)
        return entry is not None and entry.enabled

    def get_plugin_config(self, name: str) -> Dict[str, Any]:
        """Return a copy of the plugin's startup configuration."""
        entry = self._entry(name)
        return dict(entry.config) if entry else {}

    def get_enabled_list(self) -> List[str]:
        """Names explicitly marked enabled, in file order. Ignores ``enableAll``."""
        return [e.name for e in self._data.plugins if e.enabled]

    def enable(self, name: str) -> None:
        entry = self._entry(name)
        if entry is None:
            self._data.plugins.append(PluginStartupEntry(name=name, enabled=True))
        elif entry.enabled:
            return
        else:
            entry.enabled = True
        self._save()
        logger.info(f"Marked plugin for enabling: {name}")

    def disable(self, name: str) -> None:
        entry = self._entry(name)
        if entry is None or not entry.enabled:
            return
        entry.enabled = False
        self._save()
        logger.info(f"Removed plugin from startup list: {name}")

    def update_plugin_config(self, name: str, config: Dict[str, Any]) -> None:
        """Replace the plugin's startup configuration, adding a disabled entry if needed."""
        entry = self._entry(name)
        if entry is None:
            entry = PluginStartupEntry(name=name)
            self._data.plugins.append(entry)
        entry.config = dict(config)
        self._save()
        logger.info(f"Updated startup config for plugin: {name}")

    def reload(self) -> None:
        self._data = self._load()
