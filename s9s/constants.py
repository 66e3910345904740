"""Global constants for the s9s plugin core."""

import os
from pathlib import Path

# Seconds between two health sweeps of the plugin supervisor
HEALTH_CHECK_INTERVAL = float(os.getenv("S9S_PLUGIN_HEALTH_INTERVAL", "30"))

# Restart attempts the supervisor makes before disabling an unhealthy plugin
MAX_RESTARTS = 3

# Directory paths
S9S_HOME = Path(os.getenv("S9S_HOME", str(Path.home() / ".s9s")))

_config_file_env = os.getenv("S9S_PLUGIN_CONFIG_FILE", "")
PLUGIN_CONFIG_FILE = Path(_config_file_env) if _config_file_env else S9S_HOME / "plugins.json"

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOG_DIR = PROJECT_ROOT / "log"
