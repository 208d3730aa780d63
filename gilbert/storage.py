"""Locations of the tool's user and project storage."""

from __future__ import annotations

import enum
import os
import shutil
from pathlib import Path

from .fs import exists

_HOME_DIR_NAME = ".gilbert"

STORE_VAR_NAME = "GILBERT_HOME"
"""Environment variable that overrides the storage directory."""

_storage_dir: str | None = None


class StorageError(Exception):
    """A storage location could not be resolved."""


class StorageType(enum.IntEnum):
    """Kinds of storage."""

    ROOT = 0
    PLUGINS = 1


_STORAGE_DIRS = {
    StorageType.ROOT: "",
    StorageType.PLUGINS: "plugins",
}


def _join(*parts: str) -> str:
    kept = [part for part in parts if part]
    if not kept:
        return ""
    return os.path.normpath(os.path.join(*kept))


def _compose(prefix: str, storage_type: int, paths: tuple[str, ...]) -> str:
    try:
        directory = _STORAGE_DIRS[storage_type]
    except (KeyError, TypeError):
        raise StorageError("unknown storage type") from None
    result = _join(prefix, directory)
    if paths:
        result += os.sep + _join(*paths)
    return result


def home() -> str:
    """Return the storage root directory.

    The value of GILBERT_HOME, once read, is kept for later calls.
    """
    global _storage_dir
    if _storage_dir:
        return _storage_dir

    env_value = os.environ.get(STORE_VAR_NAME, "")
    if env_value:
        _storage_dir = env_value
        return env_value

    try:
        user_home = Path.home()
    except (RuntimeError, KeyError) as err:
        raise StorageError(f"failed to get storage directory, {err}") from err
    return os.path.join(str(user_home), _HOME_DIR_NAME)


def path(storage_type: int, *args: str) -> str:
    """Return the path of a storage item."""
    return _compose(home(), storage_type, args)


def local_path(storage_type: int, *args: str) -> str:
    """Return the path of a storage item inside the current project."""
    return _compose(os.path.join(os.getcwd(), _HOME_DIR_NAME), storage_type, args)


def delete(storage_type: int, *args: str) -> None:
    """Remove a storage item if it exists."""
    target = path(storage_type, *args)
    if not exists(target):
        return
    if os.path.isdir(target) and not os.path.islink(target):
        shutil.rmtree(target)
    else:
        os.remove(target)