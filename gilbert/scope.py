"""Variable scopes of jobs and expression evaluation against them."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from typing import Any, Protocol

from .shell import Environment, ProcessError, format_exit_error, prepare_command

DEBUG = False
"""Debug mode flag."""


class ScopeError(Exception):
    """A scope cannot perform the requested operation."""


@dataclass(frozen=True)
class ProjectEnvironment:
    """Information about the project environment."""

    project_directory: str = ""


class CommandProcessor(Protocol):
    """Runs shell commands found in expressions."""

    def eval_command(self, command: str) -> bytes: ...


class ValueResolver(Protocol):
    """Resolves variable values for expressions."""

    def value_by_name(self, name: str) -> str | None: ...

    def values(self) -> Any: ...


@dataclass(frozen=True)
class EvalContext:
    """What an expression parser needs to evaluate an expression."""

    command_processor: CommandProcessor
    env: ValueResolver


class ExpressionParser(Protocol):
    """Expands expressions inside strings."""

    def read_string(self, ctx: EvalContext, text: str) -> str: ...


def _merge(base: dict[str, str] | None, extra: dict[str, str] | None) -> dict[str, str]:
    merged = dict(base or {})
    merged.update(extra or {})
    return merged


class ScopeExprAdapter:
    """Lets an expression parser resolve values and run commands in a scope."""

    def __init__(self, scope: Scope) -> None:
        self.scope = scope

    def _process_env(self) -> dict[str, str]:
        variables = Environment(self.scope.variables or {})
        environ = self.scope.environ()
        entries = environ if variables.empty() else variables.to_array(*environ)
        env: dict[str, str] = {}
        for entry in entries:
            key, sep, value = entry.partition("=")
            if sep:
                env[key] = value
        return env

    def eval_command(self, command: str) -> bytes:
        """Run *command* in the project directory and return its combined output."""
        kwargs = prepare_command(command)
        directory = self.scope.environment.project_directory or None
        try:
            completed = subprocess.run(
                **kwargs,
                cwd=directory,
                env=self._process_env(),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=True,
            )
        except subprocess.CalledProcessError as err:
            output = (err.output or b"").decode(errors="replace")
            raise ProcessError(f"{format_exit_error(err)} ({output})") from err
        except OSError as err:
            raise ProcessError(f"{format_exit_error(err)} ()") from err
        return completed.stdout

    def value_by_name(self, name: str) -> str | None:
        """Return the value of a local or global variable, or None."""
        try:
            return self.scope.var(name)[1]
        except KeyError:
            return None

    def values(self) -> dict[str, str]:
        """Return the local variables of the scope."""
        return self.scope.variables

    def eval_context(self) -> EvalContext:
        """Return an evaluation context bound to the scope."""
        return EvalContext(command_processor=self, env=self)


@dataclass
class Scope:
    """Global and local variables of a specific job."""

    global_vars: dict[str, str] = field(default_factory=dict)
    variables: dict[str, str] = field(default_factory=dict)
    parser: ExpressionParser | None = None
    environment: ProjectEnvironment = field(default_factory=ProjectEnvironment)

    @classmethod
    def create(
        cls,
        parser: ExpressionParser | None,
        project_directory: str,
        variables: dict[str, str] | None,
    ) -> Scope:
        """Create a scope with the predefined project globals."""
        return cls(
            global_vars={
                "PROJECT": project_directory,
                "BUILD": os.path.normpath(os.path.join(project_directory, "build")),
                "GOPATH": os.environ.get("GOPATH", ""),
            },
            variables=dict(variables or {}),
            parser=parser,
            environment=ProjectEnvironment(project_directory),
        )

    def append_globals(self, globals_: dict[str, str] | None) -> Scope:
        """Add global variables, overriding existing ones; return the scope."""
        self.global_vars = _merge(self.global_vars, globals_)
        return self

    def append_variables(self, variables: dict[str, str] | None) -> Scope:
        """Add local variables, overriding existing ones; return the scope."""
        self.variables = _merge(self.variables, variables)
        return self

    def global_var(self, name: str) -> str | None:
        """Return a global variable's value, or None if it is not defined."""
        return self.global_vars.get(name)

    def var(self, name: str) -> tuple[bool, str]:
        """Return ``(is_local, value)`` for a local or global variable.

        Raises KeyError if the variable is defined in neither.
        """
        if name in self.variables:
            return True, self.variables[name]
        if name in self.global_vars:
            return False, self.global_vars[name]
        raise KeyError(name)

    def expand_variables(self, text: str) -> str:
        """Expand the expressions inside *text*."""
        if self.parser is None:
            raise ScopeError("scope.ExpandVariables: missing expression parser")
        ctx = ScopeExprAdapter(self).eval_context()
        return self.parser.read_string(ctx, text)

    def scan(self, *args: str) -> list[str]:
        """Expand each string and return the results in the same order."""
        if self.parser is None:
            raise ScopeError("scope.Scan: missing expression parser")
        ctx = ScopeExprAdapter(self).eval_context()
        return [self.parser.read_string(ctx, text) for text in args]

    def environ(self) -> list[str]:
        """Return the OS environment as ``KEY=value`` entries, followed by the globals."""
        env = [f"{key}={value}" for key, value in os.environ.items()]
        env.extend(f"{key}={value}" for key, value in self.global_vars.items())
        return env