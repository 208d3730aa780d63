"""Plugin source that downloads plugins over HTTP."""

from __future__ import annotations

import hashlib
import logging
import os
from typing import Callable
from urllib.parse import SplitResult, urlunsplit

import requests

from . import storage
from .fs import exists
from .pluginsupport import PLUGIN_PERMISSIONS, add_plugin_extension
from .web import progress_download_file

PROVIDER_NAME = "http"
"""Name of the HTTP plugin provider."""

ALT_PROVIDER_NAME = "https"
"""Alternative name of the HTTP plugin provider."""

_DEFAULT_PLUGIN_FILE_NAME = "plugin"

_log = logging.getLogger("gilbert")

Downloader = Callable[[requests.Session, str, str], None]


def plugin_directory(uri: str) -> str:
    """Return the storage directory of a plugin URL, relative to the plugins store."""
    return os.path.join(PROVIDER_NAME, hashlib.md5(uri.encode()).hexdigest())


def get_plugin(
    uri: str | SplitResult, downloader: Downloader = progress_download_file
) -> str:
    """Return the local path of a plugin downloaded from *uri*."""
    str_url = uri if isinstance(uri, str) else urlunsplit(uri)
    directory = storage.path(storage.StorageType.PLUGINS, plugin_directory(str_url))
    plugin_path = os.path.join(directory, add_plugin_extension(_DEFAULT_PLUGIN_FILE_NAME))

    if not exists(plugin_path):
        _log.debug("http: init plugin directory: '%s'", directory)
        os.makedirs(directory, mode=PLUGIN_PERMISSIONS, exist_ok=True)
        _log.info("Downloading plugin file from '%s'...", str_url)
        with requests.Session() as session:
            downloader(session, str_url, plugin_path)

    return plugin_path