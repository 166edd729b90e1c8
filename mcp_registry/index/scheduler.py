"""Cancellable repeating background tasks."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Protocol

_LOGGER = logging.getLogger(__name__)


class ScheduledTask(Protocol):
    def cancel(self) -> None:
        """Stop future runs; a run already in progress finishes."""

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the task to stop."""


class Scheduler(Protocol):
    def schedule_with_fixed_delay(
        self,
        action: Callable[[], None],
        initial_delay: float,
        delay: float,
    ) -> ScheduledTask:
        """Run ``action`` repeatedly, ``delay`` seconds after each run ends."""

    def shutdown(self) -> None:
        """Cancel every task; later calls are no-ops."""


class RepeatingTask:
    """Daemon thread that runs an action on a fixed delay until cancelled."""

    def __init__(
        self,
        action: Callable[[], None],
        initial_delay: float,
        delay: float,
        *,
        name: str = "repeating-task",
    ) -> None:
        if delay <= 0:
            raise ValueError("delay must be positive")
        self._action = action
        self._initial_delay = max(0.0, initial_delay)
        self._delay = delay
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "RepeatingTask":
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stopped.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.is_alive():
            self._thread.join(timeout)

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def _run(self) -> None:
        if self._stopped.wait(self._initial_delay):
            return
        while True:
            try:
                self._action()
            except Exception:  # noqa: BLE001 - keep the loop alive
                _LOGGER.exception("Scheduled task %s failed", self._thread.name)
            if self._stopped.wait(self._delay):
                return


class ThreadScheduler:
    """Minimal scheduler that backs each task with its own daemon thread."""

    def __init__(self, *, name: str = "mcp-index") -> None:
        self._name = name
        self._lock = threading.Lock()
        self._tasks: List[RepeatingTask] = []
        self._shutdown = False

    def schedule_with_fixed_delay(
        self,
        action: Callable[[], None],
        initial_delay: float,
        delay: float,
    ) -> RepeatingTask:
        with self._lock:
            if self._shutdown:
                raise RuntimeError("scheduler has been shut down")
            task = RepeatingTask(
                action,
                initial_delay,
                delay,
                name=f"{self._name}-{len(self._tasks) + 1}",
            )
            self._tasks.append(task)
        return task.start()

    def shutdown(self) -> None:
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            tasks = list(self._tasks)
        for task in tasks:
            task.cancel()

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown
