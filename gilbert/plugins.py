"""Importing plugins from local files, GitHub releases, web servers and source packages."""

from __future__ import annotations

import logging
import os
import sys
from typing import Callable
from urllib.parse import SplitResult, urlsplit

from . import github, gopkg, httpsource
from .handlers import ActionHandlers

SourceProvider = Callable[[SplitResult], str]
"""Fetches or builds a plugin named by a URL and returns its local path."""

_log = logging.getLogger("gilbert")


class PluginError(Exception):
    """A plugin could not be imported or loaded."""


def get_local_plugin(uri: str | SplitResult) -> str:
    """Return the path of a plugin referenced by a ``file`` URL."""
    parts = urlsplit(uri) if isinstance(uri, str) else uri
    host = parts.netloc.rpartition("@")[2]
    kept = [part for part in (host, parts.path) if part]
    if not kept:
        return ""
    return os.path.normpath("/".join(kept))


IMPORT_HANDLERS: dict[str, SourceProvider] = {
    "file": get_local_plugin,
    github.PROVIDER_NAME: github.get_plugin,
    httpsource.ALT_PROVIDER_NAME: httpsource.get_plugin,
    httpsource.PROVIDER_NAME: httpsource.get_plugin,
    gopkg.PROVIDER_NAME: gopkg.get_plugin,
}
"""Plugin source providers by URL scheme."""


def load_plugin(lib_path: str) -> tuple[str, ActionHandlers]:
    """Load the plugin library at *lib_path* and return its name and action handlers."""
    if sys.platform.startswith(("linux", "darwin")):
        raise PluginError("plugin feature not implemented")
    raise PluginError("plugins currently are not supported on this platform")


def _import(plugin_url: str) -> tuple[str, ActionHandlers]:
    try:
        parts = urlsplit(plugin_url)
    except ValueError as err:
        raise PluginError(f"invalid plugin import URL ({err})") from err

    if not parts.scheme:
        raise PluginError("invalid plugin import URL")

    handler = IMPORT_HANDLERS.get(parts.scheme)
    if handler is None:
        raise PluginError(f"unsupported plugin URL handler: '{parts.scheme}'")

    try:
        plugin_path = handler(parts)
    except Exception as err:
        raise PluginError(f"failed to import plugin: {err}") from err

    try:
        plugin_name, handlers = load_plugin(plugin_path)
    except Exception as err:
        raise PluginError(f"failed to load plugin: {err}") from err

    plugin_name = plugin_name.strip()
    if not plugin_name:
        raise PluginError("plugin name should not be empty")

    _log.debug("loader: loaded plugin '%s' from '%s'", plugin_name, plugin_path)
    return plugin_name, {name.strip(): factory for name, factory in handlers.items()}


def import_plugin(plugin_url: str) -> tuple[str, ActionHandlers]:
    """Fetch and load the plugin at *plugin_url*.

    Returns the plugin name and its action handlers by action name.
    """
    try:
        return _import(plugin_url)
    except PluginError as err:
        raise PluginError(f"failed to load plugin from '{plugin_url}':\n{err}") from err