"""Platform-specific plugin file details."""

from __future__ import annotations

import sys

PLUGIN_PERMISSIONS = 0o755
"""File mode used for plugin directories and files."""


def _native_plugins() -> bool:
    return sys.platform.startswith(("linux", "darwin"))


def add_plugin_extension(file_name: str) -> str:
    """Append the platform's plugin file extension to *file_name*."""
    if _native_plugins():
        return file_name + ".so"
    if sys.platform == "win32":
        return file_name + ".exe"
    return file_name


def build_mode() -> str:
    """Return the build mode used to compile plugins on this platform."""
    return "plugin" if _native_plugins() else "exe"