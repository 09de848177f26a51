"""Client-side synchronization and invitation workflow core for the federation dashboard."""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
