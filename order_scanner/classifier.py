"""Keystroke classifier that tells scanner bursts apart from human typing.

A scanner types digits at machine speed and ends the burst with Enter. A
person typing into the same keyboard is slower and uneven. The classifier
buffers digits and only emits a :data:`RecognizedCode` when Enter arrives and
the buffer looks scanner-made: at least ``streak`` fast keys, or at least
``long_code_length`` digits (slow first reads from some scanners still
produce long codes).

States::

    IDLE --digit--> ACCUMULATING --Enter (confirmed)--> IDLE, emit
                         |  ^ digit (re-arms inactivity timer)
                         |--Enter (unconfirmed)-------> IDLE, discard
                         '--inactivity timeout--------> IDLE, discard
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from order_scanner.clock import Clock, TimerHandle
from order_scanner.config import (
    FAST_KEY_THRESHOLD_S,
    INACTIVITY_TIMEOUT_S,
    LONG_CODE_LENGTH,
    QUANTITY_FIELD_ID,
    SCANNER_STREAK,
)
from order_scanner.errors import DiscardReason
from order_scanner.models import FieldKind, KeyEvent, RecognizedCode

logger = logging.getLogger(__name__)

UNOBSERVED_KINDS = frozenset({FieldKind.TEXTAREA, FieldKind.SELECT})


class ScanState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"


class Verdict(str, Enum):
    """What the classifier did with one key."""

    IGNORED = "ignored"
    BUFFERED = "buffered"
    COMMIT = "commit"
    FIELD_SUBMIT = "field_submit"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class Classification:
    verdict: Verdict
    code: RecognizedCode | None = None
    reason: DiscardReason | None = None

    @property
    def suppress_default(self) -> bool:
        """True when the key's normal effect on its field must not happen."""
        return self.verdict is Verdict.COMMIT


IGNORED = Classification(Verdict.IGNORED)


@dataclass
class BufferState:
    """Digits collected since the classifier left IDLE."""

    digits: list[str]
    last_key_timestamp: float
    # The digit that opened the buffer counts as the first key of the streak.
    fast_streak: int = 1
    reset_timer: TimerHandle | None = field(default=None, repr=False)

    @property
    def text(self) -> str:
        return "".join(self.digits)


class StreamClassifier:
    """Finite-state machine fed one :class:`KeyEvent` at a time."""

    def __init__(
        self,
        clock: Clock,
        *,
        quantity_field_id: str = QUANTITY_FIELD_ID,
        fast_key_threshold: float = FAST_KEY_THRESHOLD_S,
        inactivity_timeout: float = INACTIVITY_TIMEOUT_S,
        streak: int = SCANNER_STREAK,
        long_code_length: int = LONG_CODE_LENGTH,
        on_buffer: Callable[[str], None] | None = None,
    ) -> None:
        self._clock = clock
        self._quantity_field_id = quantity_field_id
        self._fast_key_threshold = fast_key_threshold
        self._inactivity_timeout = inactivity_timeout
        self._streak = streak
        self._long_code_length = long_code_length
        self._on_buffer = on_buffer
        self._buffer: BufferState | None = None
        self._timer_tokens = itertools.count(1)
        self._live_timer_token = 0

    @property
    def state(self) -> ScanState:
        return ScanState.IDLE if self._buffer is None else ScanState.ACCUMULATING

    @property
    def buffer(self) -> str:
        return self._buffer.text if self._buffer is not None else ""

    @property
    def fast_streak(self) -> int:
        return self._buffer.fast_streak if self._buffer is not None else 0

    def feed(self, event: KeyEvent) -> Classification:
        if event.target_kind in UNOBSERVED_KINDS:
            return IGNORED

        if event.is_digit:
            self._accept_digit(event)
            return Classification(Verdict.BUFFERED)

        if event.is_enter and self._buffer is not None:
            return self._evaluate_enter(self._buffer, event)

        return IGNORED

    def reset(self, reason: DiscardReason = DiscardReason.CONTEXT_TEARDOWN) -> None:
        """Drop any live buffer and cancel its timer. Safe to call when IDLE."""
        if self._buffer is None:
            return
        self._discard(reason)

    def _accept_digit(self, event: KeyEvent) -> None:
        buffer = self._buffer
        if buffer is None:
            buffer = self._buffer = BufferState(digits=[event.key], last_key_timestamp=event.timestamp)
        else:
            gap = event.timestamp - buffer.last_key_timestamp
            if gap < self._fast_key_threshold:
                buffer.fast_streak += 1
            elif gap >= self._inactivity_timeout:
                buffer.fast_streak = 0
            buffer.digits.append(event.key)
            buffer.last_key_timestamp = event.timestamp
        self._arm_inactivity_timer(buffer)
        self._publish()

    def _evaluate_enter(self, buffer: BufferState, event: KeyEvent) -> Classification:
        confirmed = buffer.fast_streak >= self._streak or len(buffer.digits) >= self._long_code_length
        if confirmed:
            code = RecognizedCode(buffer.text)
            self._clear()
            logger.debug(f"scan_commit code={code} target={event.target_id}")
            return Classification(Verdict.COMMIT, code)

        self._discard(DiscardReason.UNCONFIRMED_ENTER)
        if event.target_id == self._quantity_field_id and event.target_kind is FieldKind.NUMERIC:
            return Classification(Verdict.FIELD_SUBMIT, reason=DiscardReason.UNCONFIRMED_ENTER)
        return Classification(Verdict.DISCARDED, reason=DiscardReason.UNCONFIRMED_ENTER)

    def _arm_inactivity_timer(self, buffer: BufferState) -> None:
        if buffer.reset_timer is not None:
            buffer.reset_timer.cancel()
        token = next(self._timer_tokens)
        self._live_timer_token = token
        buffer.reset_timer = self._clock.call_later(self._inactivity_timeout, lambda: self._on_inactivity(token))

    def _on_inactivity(self, token: int) -> None:
        if token != self._live_timer_token or self._buffer is None:
            logger.debug(f"scan_timer_race token={token} live={self._live_timer_token}")
            return
        self._discard(DiscardReason.INACTIVITY)

    def _discard(self, reason: DiscardReason) -> None:
        logger.debug(f"scan_discard reason={reason.value} digits={len(self.buffer)}")
        self._clear()

    def _clear(self) -> None:
        buffer = self._buffer
        if buffer is not None and buffer.reset_timer is not None:
            buffer.reset_timer.cancel()
        self._buffer = None
        self._live_timer_token = 0
        self._publish()

    def _publish(self) -> None:
        if self._on_buffer is not None:
            self._on_buffer(self.buffer)
