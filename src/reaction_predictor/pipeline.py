"""Bounded training queue drained by background worker threads.

Producers (history replay, live messages) call :meth:`TrainingPipeline.submit`,
which blocks while the queue is full instead of dropping data. Workers hand
each item to a handler; a failing item is logged and skipped so one bad
message can never stall or kill a worker.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from typing import Generic, Optional, TypeVar

import structlog

from .exceptions import InvalidConfiguration, PipelineClosed

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_QUEUE_SIZE = 100
DEFAULT_WORKERS = 1

_STOP = object()


class TrainingPipeline(Generic[T]):
    """A bounded FIFO queue feeding ``workers`` daemon threads.

    With a single worker (the default) items are handled strictly in
    submission order. No ordering holds across several workers.

    Args:
        handler: Called once per submitted item from a worker thread.
        queue_size: Queue capacity; ``submit`` blocks when it is reached.
        workers: Number of worker threads.
        name: Thread name prefix, useful in logs and debuggers.
    """

    def __init__(
        self,
        handler: Callable[[T], None],
        queue_size: int = DEFAULT_QUEUE_SIZE,
        workers: int = DEFAULT_WORKERS,
        name: str = "trainer",
    ) -> None:
        if queue_size < 1:
            raise InvalidConfiguration(f"queue_size must be >= 1, got {queue_size}")
        if workers < 1:
            raise InvalidConfiguration(f"workers must be >= 1, got {workers}")

        self._handler = handler
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._submit_lock = threading.Lock()
        self._idle = threading.Condition()
        self._pending = 0
        self._closed = False

        self._threads = [
            threading.Thread(target=self._run, name=f"{name}-{i}", daemon=True)
            for i in range(workers)
        ]
        for thread in self._threads:
            thread.start()

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def workers(self) -> int:
        return len(self._threads)

    @property
    def pending(self) -> int:
        """Items submitted but not yet fully handled."""
        with self._idle:
            return self._pending

    @property
    def is_closed(self) -> bool:
        return self._closed

    def submit(self, item: T) -> None:
        """Queue ``item`` for handling, blocking while the queue is full.

        Raises:
            PipelineClosed: If :meth:`close` has been called.
        """
        with self._submit_lock:
            if self._closed:
                raise PipelineClosed("training pipeline is closed")
            with self._idle:
                self._pending += 1
            self._queue.put(item)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait until every submitted item has been handled.

        Returns:
            ``True`` if the pipeline is idle, ``False`` on timeout.
        """
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def close(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Stop accepting items and let the workers drain the queue.

        Safe to call more than once.
        """
        with self._submit_lock:
            if self._closed:
                already_closed = True
            else:
                already_closed = False
                self._closed = True
                for _ in self._threads:
                    self._queue.put(_STOP)

        if not already_closed:
            logger.debug("training pipeline closing", pending=self.pending)
        if wait:
            for thread in self._threads:
                thread.join(timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._queue.task_done()
                return
            try:
                self._handler(item)
            except Exception:
                logger.exception("training item failed", thread=threading.current_thread().name)
            finally:
                self._queue.task_done()
                with self._idle:
                    self._pending -= 1
                    if not self._pending:
                        self._idle.notify_all()
