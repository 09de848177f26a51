"""Version information for federation-sync."""

__version__ = "0.1.0"
