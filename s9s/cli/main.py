#!/usr/bin/env python
"""
s9s plugin shell

Usage:
    python -m s9s.cli
    python -m s9s.cli --interval 5   # health check every 5 seconds
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

# Load environment variables FIRST (before importing project modules)
load_dotenv('.env')

from s9s.cli.repl import REPLRunner
from s9s.constants import LOG_DIR


def setup_logging():
    """Log INFO and above to log/shell.log, only WARNING to the console."""
    LOG_DIR.mkdir(exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    file_handler = logging.FileHandler(LOG_DIR / "shell.log", encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    # keep INFO lines out of the prompt
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def parse_args():
    parser = argparse.ArgumentParser(
        description='s9s plugin shell',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        '-i', '--interval',
        type=float,
        default=None,
        help='Health check interval in seconds (default: healthCheckInterval from the plugin file, else S9S_PLUGIN_HEALTH_INTERVAL or 30)'
    )
    return parser.parse_args()


def main():
    try:
        args = parse_args()
        setup_logging()
        repl = REPLRunner(health_check_interval=args.interval)
        asyncio.run(repl.run())
    except KeyboardInterrupt:
        print("\n\033[33minterrupted\033[0m")
        sys.exit(0)


if __name__ == "__main__":
    main()
