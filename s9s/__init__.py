"""s9s plugin lifecycle core."""

__version__ = "0.5.0"
