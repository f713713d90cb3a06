"""Configuration package for Site Inspector.

Re-exports the settings symbols so that callers can write::

    from site_inspector.config import get_settings
"""

from __future__ import annotations

from site_inspector.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
