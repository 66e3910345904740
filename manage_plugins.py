#!/usr/bin/env python3
"""Plugin management CLI tool."""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

# Ensure project root is in path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# Load environment variables before reading s9s.constants
load_dotenv(project_root / ".env")

from s9s.constants import PLUGIN_CONFIG_FILE
from s9s.plugins.bundled import builtin_plugins
from s9s.plugins.config import PluginConfigService, PluginStartupFile
from s9s.plugins.errors import DependencyCycle, MissingDependency, PluginError
from s9s.plugins.registry import PluginRegistry


def get_registry() -> PluginRegistry:
    """Create a registry holding the bundled plugins."""
    registry = PluginRegistry()
    for plugin in builtin_plugins():
        registry.register(plugin)
    return registry


def get_config() -> PluginConfigService:
    """Create a PluginConfigService instance."""
    return PluginConfigService(PLUGIN_CONFIG_FILE)


def cmd_list(args):
    """List all bundled plugins."""
    registry = get_registry()
    config = get_config()
    enabled_ids = [name for name in registry.names() if config.is_enabled(name)]

    print(f"{'Name':<16} {'Version':<9} {'Enabled':<8} {'Requires':<20} {'Capabilities'}")
    print("-" * 90)

    for name in registry.names():
        info = registry.get_info(name)
        enabled = "Yes" if name in enabled_ids else "No"
        requires = ", ".join(info.requires) or "-"
        caps = ", ".join(registry.capabilities(name).names())
        print(f"{name:<16} {info.version:<9} {enabled:<8} {requires:<20} {caps}")


def cmd_info(args):
    """Show detailed plugin information."""
    registry = get_registry()
    config = get_config()

    if not registry.has(args.name):
        print(f"Plugin '{args.name}' not found.")
        sys.exit(1)

    info = registry.get_info(args.name)
    plugin_config = config.get_plugin_config(args.name)

    print(f"Plugin: {info.name}")
    print(f"  Version:      {info.version}")
    print(f"  Description:  {info.description}")
    print(f"  Author:       {info.author}")
    print(f"  License:      {info.license}")
    print(f"  Requires:     {', '.join(info.requires) or '-'}")
    print(f"  Provides:     {', '.join(info.provides) or '-'}")
    print(f"  Capabilities: {', '.join(registry.capabilities(args.name).names())}")
    print(f"  Enabled:      {config.is_enabled(args.name)}")
    if plugin_config:
        print(f"  Config:       {json.dumps(plugin_config, indent=4, ensure_ascii=False)}")
    if info.config_schema:
        schema = {k: v.model_dump() for k, v in info.config_schema.items()}
        print(f"  Schema:       {json.dumps(schema, indent=4)}")


def cmd_enable(args):
    """Mark a plugin for enabling at startup."""
    registry = get_registry()
    if not registry.has(args.name):
        print(f"Plugin '{args.name}' not found.")
        sys.exit(1)

    config = get_config()
    for dep in registry.get_info(args.name).requires:
        if not config.is_enabled(dep):
            print(f"Warning: '{args.name}' requires '{dep}', which is not enabled.")

    config.enable(args.name)
    print(f"Plugin '{args.name}' enabled. Restart s9s to take effect.")


def cmd_disable(args):
    """Remove a plugin from the startup list."""
    config = get_config()
    config.disable(args.name)
    print(f"Plugin '{args.name}' disabled. Restart s9s to take effect.")


def cmd_doctor(args):
    """Run health checks on the plugin setup."""
    issues = []

    if PLUGIN_CONFIG_FILE.exists():
        try:
            with open(PLUGIN_CONFIG_FILE) as f:
                PluginStartupFile.model_validate(json.load(f))
        except json.JSONDecodeError as e:
            issues.append(f"Plugin config file has invalid JSON: {e}")
        except ValidationError as e:
            issues.append(f"Plugin config file does not match the expected format: {e}")

    registry = get_registry()
    config = get_config()
    enabled_ids = config.get_enabled_list()

    for name in enabled_ids:
        if not registry.has(name):
            issues.append(f"Enabled plugin '{name}' is not a bundled plugin")
            continue
        for dep in registry.get_info(name).requires:
            if not config.is_enabled(dep):
                issues.append(f"Plugin '{name}' requires '{dep}', which is not enabled")

    try:
        registry.validate_dependencies()
    except (DependencyCycle, MissingDependency) as e:
        issues.append(str(e))

    if issues:
        print(f"Found {len(issues)} issue(s):")
        for i, issue in enumerate(issues, 1):
            print(f"  {i}. {issue}")
        sys.exit(1)
    else:
        print(f"All checks passed. {registry.count()} plugin(s) found, {len(enabled_ids)} enabled.")


async def _run(seconds: float, interval: Optional[float]) -> None:
    from s9s.plugins.manager import PluginManager
    from s9s.plugins.startup import load_all

    config = get_config()
    if interval is None:
        interval = config.settings.health_check_interval
    manager = PluginManager(health_check_interval=interval)
    results = await load_all(manager, builtin_plugins(), config)
    for name, error in results.items():
        print(f"{name:<16} {'started' if error is None else f'FAILED: {error}'}")

    manager.start_health_checks()
    try:
        await asyncio.sleep(seconds)
    finally:
        print()
        for entry in await manager.list_plugins():
            d = entry.to_dict()
            print(
                f"{d['name']:<16} enabled={d['enabled']!s:<5} running={d['running']!s:<5} "
                f"health={d['health']:<11} restarts={d['restart_count']}"
            )
        await manager.stop()


def cmd_run(args):
    """Enable the configured plugins, supervise them for a while, then shut down."""
    try:
        asyncio.run(_run(args.seconds, args.interval))
    except PluginError as e:
        print(f"Plugin error: {e}")
        sys.exit(1)


def main():
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="s9s Plugin Manager")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list
    subparsers.add_parser("list", help="List all plugins")

    # info
    info_parser = subparsers.add_parser("info", help="Show plugin details")
    info_parser.add_argument("name", help="Plugin name")

    # enable
    enable_parser = subparsers.add_parser("enable", help="Enable a plugin at startup")
    enable_parser.add_argument("name", help="Plugin name")

    # disable
    disable_parser = subparsers.add_parser("disable", help="Disable a plugin at startup")
    disable_parser.add_argument("name", help="Plugin name")

    # doctor
    subparsers.add_parser("doctor", help="Run dependency checks")

    # run
    run_parser = subparsers.add_parser("run", help="Run the enabled plugins under supervision")
    run_parser.add_argument("--seconds", type=float, default=5.0, help="How long to run")
    run_parser.add_argument(
        "--interval", type=float, default=None,
        help="Health check interval (default: healthCheckInterval from the plugin file)",
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "list": cmd_list,
        "info": cmd_info,
        "enable": cmd_enable,
        "disable": cmd_disable,
        "doctor": cmd_doctor,
        "run": cmd_run,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
