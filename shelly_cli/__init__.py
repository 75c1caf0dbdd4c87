"""Shelly-AI command-line interface: entry point, config, setup wizard."""

__version__ = "1.0.0"
