import threading
from typing import Optional


class CompletionTracker:
    """
    Counts outstanding jobs so the request can block until all are attempted.

    The producer calls ``add()`` before a job is enqueued and a writer calls
    ``done()`` exactly once after the job's insert attempt, whatever its
    outcome. ``wait()`` returns once the outstanding count is back to zero.
    """

    def __init__(self):
        self._condition = threading.Condition()
        self._outstanding = 0
        self._added = 0
        self._signalled = 0

    def add(self, count: int = 1) -> None:
        with self._condition:
            self._outstanding += count
            self._added += count

    def done(self) -> None:
        with self._condition:
            if self._outstanding == 0:
                raise RuntimeError("CompletionTracker.done() called more times than add()")
            self._outstanding -= 1
            self._signalled += 1
            if self._outstanding == 0:
                self._condition.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is outstanding. Returns False if ``timeout`` elapsed first."""
        with self._condition:
            return self._condition.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    @property
    def outstanding(self) -> int:
        with self._condition:
            return self._outstanding

    @property
    def added(self) -> int:
        with self._condition:
            return self._added

    @property
    def signalled(self) -> int:
        with self._condition:
            return self._signalled
