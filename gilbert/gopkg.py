"""Plugin source that builds plugins from local package sources."""

from __future__ import annotations

import hashlib
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence
from urllib.parse import SplitResult, parse_qs, urlsplit

from . import storage
from .fs import exists
from .pluginsupport import add_plugin_extension, build_mode
from .shell import ProcessError, format_exit_error

PROVIDER_NAME = "go"
"""Name of the source-package plugin provider."""

_REBUILD_PARAM = "rebuild"
_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}

_log = logging.getLogger("gilbert")

CommandRunner = Callable[[Sequence[str], str], None]


class BuildError(Exception):
    """A plugin package could not be built."""


def _parse_bool(text: str) -> bool:
    return text in _TRUE_VALUES


@dataclass
class ImportContext:
    """Where a plugin package lives and where its build goes."""

    pkg_path: str
    file_name: str
    file_path: str
    rebuild: bool = False

    @classmethod
    def from_uri(cls, uri: str | SplitResult) -> ImportContext:
        """Build the import context of a plugin URL."""
        parts = urlsplit(uri) if isinstance(uri, str) else uri
        host = parts.netloc.rpartition("@")[2]
        pkg_path = os.path.normpath(host + "/" + parts.path)
        file_name = add_plugin_extension(os.path.basename(pkg_path))
        digest = hashlib.md5(pkg_path.encode()).hexdigest()
        plugin_dir = storage.local_path(storage.StorageType.PLUGINS, digest)
        values = parse_qs(parts.query, keep_blank_values=True).get(_REBUILD_PARAM)
        return cls(
            pkg_path=pkg_path,
            file_name=file_name,
            file_path=os.path.join(plugin_dir, file_name),
            rebuild=_parse_bool(values[0]) if values else False,
        )


def plugin_cached(import_context: ImportContext) -> bool:
    """Report whether the built plugin already exists."""
    try:
        return exists(import_context.file_path)
    except OSError as err:
        _log.warning("goloader: failed to check if plugin exists, %s", err)
        return False


def run_go_command(args: Sequence[str], cwd: str) -> None:
    """Run a build command in *cwd*; raise ProcessError if it fails."""
    try:
        subprocess.run(list(args), cwd=cwd, check=True)
    except subprocess.CalledProcessError as err:
        raise format_exit_error(err) from err


def build_plugin(
    import_context: ImportContext, command_runner: CommandRunner = run_go_command
) -> None:
    """Compile the plugin package into its storage location."""
    _log.debug("goloader: building plugin package '%s'", import_context.pkg_path)
    args = [
        "go",
        "build",
        "-buildmode",
        build_mode(),
        "-o",
        import_context.file_path,
        ".",
    ]
    _log.debug("goloader: exec '%s'", " ".join(args))
    command_runner(args, import_context.pkg_path)
    _log.debug("goloader: build successful")


def get_plugin(
    uri: str | SplitResult,
    cache_check: Callable[[ImportContext], bool] = plugin_cached,
    command_runner: CommandRunner = run_go_command,
) -> str:
    """Return the path of the built plugin, building it when needed."""
    ic = ImportContext.from_uri(uri)
    if cache_check(ic) and not ic.rebuild:
        return ic.file_path

    try:
        build_plugin(ic, command_runner)
    except (OSError, ProcessError, BuildError, subprocess.SubprocessError) as err:
        raise BuildError(f"failed to build plugin package ({err})") from err
    return ic.file_path