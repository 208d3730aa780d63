"""Action handlers and their registry."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Protocol

if TYPE_CHECKING:
    from .job import RunContext
    from .scope import Scope


class ActionHandler(ABC):
    """A running action."""

    @abstractmethod
    def call(self, ctx: RunContext, runner: Any) -> None:
        """Run the action; raise to report failure."""

    @abstractmethod
    def cancel(self, ctx: RunContext) -> None:
        """Abort the running action."""


HandlerFactory = Callable[["Scope", Mapping[str, Any]], ActionHandler]
"""Builds an action handler from a scope and the action parameters."""

ActionHandlers = Dict[str, HandlerFactory]
"""Action handler factories by action name."""


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class HandlerNotFoundError(LookupError):
    """No handler is registered for an action."""

    def __init__(self, action_name: str) -> None:
        super().__init__(action_name)
        self.action_name = action_name

    def __str__(self) -> str:
        return f"no such action handler: {_quote(self.action_name)}"


class HandlerAlreadyRegisteredError(ValueError):
    """An action already has a handler."""

    def __init__(self, action_name: str) -> None:
        super().__init__(action_name)
        self.action_name = action_name

    def __str__(self) -> str:
        return f"action handler {_quote(self.action_name)} is already registered"


class HandlerResolver(Protocol):
    """Resolves action handlers by name."""

    def get_handler(self, action_name: str) -> HandlerFactory: ...


class HandlerSet:
    """A static set of action handlers."""

    def __init__(self, handlers: ActionHandlers | None = None) -> None:
        self.handlers: ActionHandlers = handlers if handlers is not None else {}

    def handle_func(self, action_name: str, handler: HandlerFactory) -> None:
        """Register *handler* for *action_name*.

        Raises HandlerAlreadyRegisteredError if the action already has one.
        """
        if action_name in self.handlers:
            raise HandlerAlreadyRegisteredError(action_name)
        self.handlers[action_name] = handler

    def get_handler(self, action_name: str) -> HandlerFactory:
        """Return the handler of *action_name*, or raise HandlerNotFoundError."""
        try:
            return self.handlers[action_name]
        except KeyError:
            raise HandlerNotFoundError(action_name) from None