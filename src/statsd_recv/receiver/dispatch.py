"""
Execution strategies for datagram processing and handler calls.

The receive loop hands every piece of work to a Dispatcher and goes
straight back to the socket. Neither strategy ever blocks in submit(),
so a slow handler can pile up work but can't stall the loop.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

log = logging.getLogger(__name__)


def _run_logged(fn: Callable[..., Any], *args: Any) -> None:
    try:
        fn(*args)
    except Exception:
        log.exception("Task %s failed", getattr(fn, "__qualname__", fn))


class Dispatcher(ABC):

    @abstractmethod
    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule fn(*args) to run concurrently. Must not block."""
        ...

    def close(self, wait: bool = True) -> None:
        """Release worker resources. Safe to call more than once."""


class ThreadSpawner(Dispatcher):
    """One daemon thread per task, no limit on how many run at once."""

    def __init__(self, name: str = "statsd-recv"):
        self._name = name

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        thread = threading.Thread(
            target=_run_logged,
            args=(fn, *args),
            name=self._name,
            daemon=True,
        )
        thread.start()


class WorkerPool(Dispatcher):
    """Bounded set of worker threads in front of an unbounded work queue.

    Caps how many handler calls run at once. Work beyond that waits in
    the executor's queue instead of blocking the caller.
    """

    def __init__(self, max_workers: int = 8):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="statsd-recv",
        )

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        self._executor.submit(_run_logged, fn, *args)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def make_dispatcher(workers: int = 0) -> Dispatcher:
    """0 workers means a fresh thread per task, anything else a pool."""
    if workers <= 0:
        return ThreadSpawner()
    return WorkerPool(max_workers=workers)
