"""Running commands through the system shell."""

from __future__ import annotations

import os
import signal
import subprocess
from typing import Any

OS_WINDOWS = "windows"

if os.name == "nt":
    SHELL_PATH = "cmd.exe"
    SHELL_CMD_PREFIX = "/C"
else:
    SHELL_PATH = "/bin/sh"
    SHELL_CMD_PREFIX = "-c"

# Forces UTF-8 output from the Windows console.
_WIN_CODE_PAGE_FIX_PREFIX = "chcp 65001 > nul"


class ProcessError(Exception):
    """A process failed to run or exited unsuccessfully."""


class Environment(dict):
    """Variables passed to a child process."""

    def empty(self) -> bool:
        """Return True when there are no variables."""
        return len(self) == 0

    def to_array(self, *args: str) -> list[str]:
        """Return ``KEY=value`` entries followed by the given defaults."""
        return [f"{key}={value}" for key, value in self.items()] + list(args)


def format_exit_error(error: BaseException) -> ProcessError:
    """Turn a process failure into a readable ProcessError."""
    if isinstance(error, subprocess.CalledProcessError):
        code = error.returncode if error.returncode >= 0 else -1
        return ProcessError(f"process finished with non-zero status code: {code}")
    return ProcessError(f"process finished with error - {error}")


def wrap_command(command: str) -> str:
    """Adapt a command line for the current platform's shell."""
    if os.name == "nt":
        return f"{_WIN_CODE_PAGE_FIX_PREFIX} && {command}"
    return command


def prepare_command(command: str) -> dict[str, Any]:
    """Return subprocess keyword arguments that run *command* in the shell.

    On POSIX systems the process is started in its own process group.
    """
    kwargs: dict[str, Any] = {"args": [SHELL_PATH, SHELL_CMD_PREFIX, wrap_command(command)]}
    if os.name != "nt":
        kwargs["start_new_session"] = True
    return kwargs


def kill_process_group(process: subprocess.Popen) -> None:
    """Kill a process started with prepare_command, including its group."""
    if os.name == "nt":
        process.kill()
        return
    os.killpg(process.pid, signal.SIGKILL)