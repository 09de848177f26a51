"""Configuration package for federation-sync."""

from .config import CacheBackend, SyncConfig, get_config, reload_config

__all__ = ["CacheBackend", "SyncConfig", "get_config", "reload_config"]
