from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class PeriodicTask:
    """Runs ``action`` forever on its own daemon thread.

    A truthy (or ``None``) result waits ``interval`` seconds before the next
    run; ``False`` or an exception waits ``backoff`` seconds instead.
    """

    name: str
    interval: float
    action: Callable[[], Optional[bool]]
    backoff: float = 10.0
    run_immediately: bool = True
    _stop: threading.Event = field(init=False, default_factory=threading.Event)
    _thread: Optional[threading.Thread] = field(init=False, default=None)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self) -> None:
        if not self.run_immediately and self._stop.wait(self.interval):
            return
        while not self._stop.is_set():
            wait = self.interval if self.run_once() else self.backoff
            if self._stop.wait(wait):
                return

    def run_once(self) -> bool:
        try:
            result = self.action()
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Task %s failed: %s", self.name, exc)
            return False
        return result is not False


@dataclass
class FailoverSupervisor:
    tasks: List[PeriodicTask]

    def start(self) -> None:
        for task in self.tasks:
            task.start()
            logger.info("Started %s (every %ss)", task.name, task.interval)

    def stop(self) -> None:
        for task in self.tasks:
            task.stop()

    def wait(self) -> None:
        for task in self.tasks:
            task.join()
