"""Brazilian OSINT lookup aggregator with result cross-referencing."""

__version__ = "0.1.0"
