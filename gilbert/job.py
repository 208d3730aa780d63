"""Run contexts shared between the task runner and running jobs."""

from __future__ import annotations

import logging
import queue
import threading
import weakref
from typing import Any, Mapping

_DEFAULT_LOGGER = logging.getLogger("gilbert")


def _sub_logger(logger: logging.Logger) -> logging.Logger:
    return logger.getChild("job")


class CancelToken:
    """A cancellation signal that propagates to its children."""

    def __init__(self, parent: CancelToken | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: weakref.WeakSet[CancelToken] = weakref.WeakSet()
        if parent is not None:
            parent._adopt(self)

    def _adopt(self, child: CancelToken) -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.add(child)
                return
        child.cancel()

    @property
    def cancelled(self) -> bool:
        """Whether the token has been cancelled."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel this token and every token derived from it."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel()

    def child(self) -> CancelToken:
        """Return a new token cancelled together with this one."""
        return CancelToken(self)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or the timeout passes; return whether cancelled."""
        return self._event.wait(timeout)


class WaitGroup:
    """Waits for a counted set of jobs to finish."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._count = 0

    def add(self, delta: int = 1) -> None:
        """Change the counter by *delta*."""
        with self._cond:
            count = self._count + delta
            if count < 0:
                raise ValueError("negative wait group counter")
            self._count = count
            if count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        """Mark one job as finished."""
        self.add(-1)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the counter reaches zero; return False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout)


class RunContext:
    """State of a running job and the channel its result is reported on.

    ``errors`` is the queue the result goes to and ``wait_group``, when set,
    is marked done once the result has been reported.
    """

    def __init__(
        self,
        parent: CancelToken | None = None,
        root_vars: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        base = parent if parent is not None else CancelToken()
        self.context: CancelToken = base.child()
        self.root_vars = root_vars
        self.errors: queue.Queue[Any] = queue.Queue(maxsize=1)
        self.wait_group: WaitGroup | None = None
        self._logger = logger if logger is not None else _DEFAULT_LOGGER
        self._child = False
        self._finished = False
        self._reported = False
        self._lock = threading.Lock()

    @property
    def is_child(self) -> bool:
        """Whether this context was derived from another one."""
        return self._child

    @property
    def is_alive(self) -> bool:
        """Whether the job has not finished yet."""
        return not self._finished

    @property
    def log(self) -> logging.Logger:
        """Logger of the job."""
        return self._logger

    def _derive(
        self,
        *,
        context: CancelToken,
        errors: queue.Queue[Any],
        wait_group: WaitGroup | None,
    ) -> RunContext:
        derived = RunContext(root_vars=self.root_vars, logger=_sub_logger(self._logger))
        derived.context = context
        derived.errors = errors
        derived.wait_group = wait_group
        derived._child = True
        return derived

    def fork_context(self) -> RunContext:
        """Return a copy sharing cancellation and results, with its own sub-logger."""
        return self._derive(context=self.context, errors=self.errors, wait_group=self.wait_group)

    def child_context(self) -> RunContext:
        """Return a child context with its own result queue and cancellation."""
        return self._derive(
            context=self.context.child(),
            errors=queue.Queue(maxsize=1),
            wait_group=None,
        )

    def timeout(self, seconds: float) -> None:
        """Cancel the job if it is still running after *seconds*."""

        def watch() -> None:
            if self.context.wait(seconds):
                return
            if not self._finished:
                self._logger.warning("Job deadline exceeded")
                self.cancel()

        threading.Thread(target=watch, daemon=True).start()

    def cancel(self) -> None:
        """Cancel the job and everything started under it."""
        self._finished = True
        self.context.cancel()

    def success(self) -> None:
        """Report a successful result."""
        self.result(None)

    def result(self, error: BaseException | None = None) -> None:
        """Report the job result; only the first report is delivered."""
        with self._lock:
            if self._reported:
                return
            self._reported = True

        self._finished = True
        try:
            self.errors.put(error)
            self._logger.debug("job: result received")
        except Exception as exc:
            self._logger.warning("Bug: failed to return job result, %s", exc)
        finally:
            if self.wait_group is not None:
                self.wait_group.done()