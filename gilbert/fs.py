"""File system helpers."""

from __future__ import annotations

import os
import re

_SEPARATORS = "/\\" if os.name == "nt" else "/"
_SPLIT = re.compile("[" + re.escape(_SEPARATORS) + "]")


def _extension(file_name: str) -> str:
    tail = _SPLIT.split(file_name)[-1]
    dot = tail.rfind(".")
    return tail[dot:] if dot >= 0 else ""


def _base(file_name: str) -> str:
    if not file_name:
        return "."
    stripped = file_name.rstrip(_SEPARATORS)
    if not stripped:
        return os.sep
    return _SPLIT.split(stripped)[-1]


def trim_file_extension(file_name: str) -> str:
    """Return the base name of *file_name* without its extension."""
    base = _base(file_name)
    ext = _extension(file_name)
    if ext and base.endswith(ext):
        return base[: -len(ext)]
    return base


def exists(location: str | os.PathLike[str]) -> bool:
    """Report whether *location* exists.

    A missing file gives False; any other failure to stat it is raised.
    """
    try:
        os.stat(location)
    except FileNotFoundError:
        return False
    return True