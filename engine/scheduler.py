"""
Deferred callbacks for computer moves.

The session never sleeps; it asks a Scheduler to run the computer's move
later and keeps the handle so a restart can cancel it.
"""

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional


class Scheduler(ABC):
    """Runs a callback after a delay. Scheduled callbacks can be cancelled."""

    @abstractmethod
    def schedule(self, delay_ms: int, callback: Callable[[], Any]) -> Any:
        """
        Schedule callback to run after delay_ms milliseconds.

        Returns:
            A handle for cancel(), or None if the callback already ran.
        """

    @abstractmethod
    def cancel(self, handle: Any):
        """Cancel a scheduled callback. Unknown or finished handles are ignored."""


class ImmediateScheduler(Scheduler):
    """Runs every callback right away, ignoring the delay."""

    def schedule(self, delay_ms: int, callback: Callable[[], Any]) -> Any:
        callback()
        return None

    def cancel(self, handle: Any):
        pass


@dataclass
class ScheduledCall:
    """A callback waiting in a ManualScheduler."""
    id: int
    delay_ms: int
    callback: Callable[[], Any]
    cancelled: bool = False


class ManualScheduler(Scheduler):
    """
    Holds callbacks until run_pending() is called.

    Lets tests (and step-by-step front ends) decide exactly when the
    computer moves.
    """

    def __init__(self):
        self._ids = itertools.count(1)
        self._queue: List[ScheduledCall] = []

    def schedule(self, delay_ms: int, callback: Callable[[], Any]) -> ScheduledCall:
        call = ScheduledCall(id=next(self._ids), delay_ms=delay_ms, callback=callback)
        self._queue.append(call)
        return call

    def cancel(self, handle: Optional[ScheduledCall]):
        if handle is None:
            return
        handle.cancelled = True
        self._queue = [call for call in self._queue if call.id != handle.id]

    @property
    def pending(self) -> List[ScheduledCall]:
        return list(self._queue)

    def run_pending(self) -> int:
        """
        Run everything queued so far, oldest first.

        Callbacks scheduled while running wait for the next call.

        Returns:
            Number of callbacks run.
        """
        ready, self._queue = self._queue, []
        ran = 0
        for call in ready:
            if call.cancelled:
                continue
            call.callback()
            ran += 1
        return ran
