import pytest

from gilbert.handlers import (
    ActionHandler,
    HandlerAlreadyRegisteredError,
    HandlerNotFoundError,
    HandlerSet,
)
from gilbert.scope import Scope


class RecordingHandler(ActionHandler):
    def __init__(self, params):
        self.params = params
        self.calls = []

    def call(self, ctx, runner):
        self.calls.append(("call", ctx, runner))

    def cancel(self, ctx):
        self.calls.append(("cancel", ctx))


def recording_factory(scope, params):
    return RecordingHandler(params)


def other_factory(scope, params):
    return RecordingHandler({})


def test_get_registered_handler():
    handlers = HandlerSet({"build": recording_factory})
    assert handlers.get_handler("build") is recording_factory


def test_handle_func_registers_handler():
    handlers = HandlerSet()
    handlers.handle_func("build", recording_factory)
    assert handlers.get_handler("build") is recording_factory


def test_handle_func_updates_given_mapping():
    mapping = {}
    handlers = HandlerSet(mapping)
    handlers.handle_func("build", recording_factory)
    assert mapping == {"build": recording_factory}


def test_duplicate_registration_fails():
    handlers = HandlerSet({"build": recording_factory})
    with pytest.raises(HandlerAlreadyRegisteredError, match="is already registered") as info:
        handlers.handle_func("build", other_factory)
    assert info.value.action_name == "build"
    assert handlers.get_handler("build") is recording_factory


def test_missing_handler():
    handlers = HandlerSet()
    with pytest.raises(HandlerNotFoundError) as info:
        handlers.get_handler("foo")
    assert str(info.value) == 'no such action handler: "foo"'
    assert info.value.action_name == "foo"


def test_missing_handler_is_lookup_error():
    with pytest.raises(LookupError):
        HandlerSet({"build": recording_factory}).get_handler("deploy")


def test_factory_builds_callable_handler():
    handlers = HandlerSet({"build": recording_factory})
    handler = handlers.get_handler("build")(Scope(), {"err": "fail"})
    handler.call("ctx", "runner")
    handler.cancel("ctx")
    assert handler.params == {"err": "fail"}
    assert handler.calls == [("call", "ctx", "runner"), ("cancel", "ctx")]


def test_action_handler_is_abstract():
    with pytest.raises(TypeError):
        ActionHandler()