"""Tracking of jobs that run asynchronously within a task."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any

from .job import CancelToken, RunContext, WaitGroup

_POLL_INTERVAL = 0.05


class AsyncJobTracker:
    """Collects the results of the asynchronous jobs of a task."""

    def __init__(self, context: CancelToken, logger: logging.Logger, pool_size: int) -> None:
        self.wait_group = WaitGroup()
        self.errors: queue.Queue[Any] = queue.Queue(maxsize=max(pool_size, 0))
        self.log = logger
        self.context = context
        self._closed = threading.Event()

    def track_async_jobs(self) -> None:
        """Wait for one async result and log it if it is an error.

        Returns early when the context is cancelled or the tracker is closed.
        """
        while True:
            try:
                error = self.errors.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if self._closed.is_set() or self.context.cancelled:
                    return
                continue
            if error is not None:
                self.log.error("ERROR: async job returned error: %s", error)
            return

    def decorate_job_context(self, ctx: RunContext) -> None:
        """Bind *ctx* to the tracker so its result is tracked."""
        self.wait_group.add(1)
        ctx.wait_group = self.wait_group
        ctx.errors = self.errors

    def wait(self) -> None:
        """Block until every tracked job has reported, then close the tracker."""
        self.wait_group.wait()
        self._closed.set()