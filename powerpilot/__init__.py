"""powerpilot: AC/battery power policy helper for Linux laptops."""

__version__ = "0.4.0"
