"""Boogie - vector snapshot builder and sync client for the boogie-vec backend.

Builds fixed-dimension embedding snapshots from track metadata and keeps a
remote nearest-neighbour backend in sync with them.
"""

__version__ = "0.1.0"
__author__ = "Boogie Contributors"

from boogie.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
