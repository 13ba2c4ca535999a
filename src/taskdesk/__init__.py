"""Console todo client with inactivity-based auto-logout."""

__version__ = "0.1.0"
