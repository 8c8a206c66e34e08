"""Command-line tools for 1inch limit orders on Polygon."""

__version__ = "0.1.0"
