"""Deferred tasks run once when a request/command finishes."""

import atexit
import logging

logger = logging.getLogger("mailprefs.shutdown")


class ShutdownQueue:
    """Collects objects with a ``shutdown()`` method; each runs at most once.

    The queue registers itself with ``atexit`` when the first task is added,
    so tasks still run if the caller never calls ``run()`` explicitly.
    """

    def __init__(self):
        self._tasks: list = []
        self._registered = False

    def add(self, task) -> None:
        if any(t is task for t in self._tasks):
            return
        self._tasks.append(task)
        if not self._registered:
            atexit.register(self.run)
            self._registered = True

    def __len__(self) -> int:
        return len(self._tasks)

    def run(self) -> None:
        tasks, self._tasks = self._tasks, []
        if self._registered:
            atexit.unregister(self.run)
            self._registered = False
        for task in tasks:
            logger.debug("Running shutdown task %s", type(task).__name__)
            task.shutdown()
