"""Clock and single-shot timer abstraction.

The scanner pipeline never reads wall-clock time or creates timers directly.
It is handed a :class:`Clock`, which is a :class:`TextualClock` inside the
running app and a :class:`VirtualClock` in tests, where time only moves when
the test advances it.
"""

from __future__ import annotations

import heapq
import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from textual.message_pump import MessagePump
from textual.timer import Timer


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class TextualTimerHandle:
    """Cancellable handle around a Textual :class:`Timer`."""

    def __init__(self, timer: Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class TextualClock:
    """Schedules callbacks on a Textual message pump (an App or a Screen)."""

    def __init__(self, owner: MessagePump) -> None:
        self._owner = owner

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return TextualTimerHandle(self._owner.set_timer(delay, callback))


@dataclass(order=True)
class _Scheduled:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class VirtualClock:
    """Deterministic clock whose timers fire only when time is advanced."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[_Scheduled] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        entry = _Scheduled(self._now + max(0.0, delay), next(self._seq), callback)
        heapq.heappush(self._queue, entry)
        return entry

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry.cancelled)

    def advance(self, seconds: float) -> None:
        self.advance_to(self._now + seconds)

    def advance_to(self, when: float) -> None:
        """Move time forward to ``when``, firing due timers in order."""
        if when < self._now:
            raise ValueError("VirtualClock cannot move backwards")
        while self._queue and self._queue[0].due <= when:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._now = entry.due
            entry.callback()
        self._now = when
