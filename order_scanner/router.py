"""Routes classified scans to the order draft in one of two listening contexts.

Exactly one subscription is live at a time:

* :class:`Composing` while the order surface is open. Scans go straight to
  the draft.
* :class:`Idle` while it is closed. A scan first opens the surface, then is
  handed to the new draft once the surface reports ready (or the settle delay
  runs out, whichever comes first). Scans that arrive meanwhile queue behind
  it and are applied in the order they were read.

Switching always tears the old subscription down before the new one is set
up, and a buffer in flight is dropped rather than carried across.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Protocol

from order_scanner.accumulator import OrderLineAccumulator
from order_scanner.classifier import IGNORED, Classification, StreamClassifier, Verdict
from order_scanner.clock import Clock, TimerHandle
from order_scanner.config import QUANTITY_FIELD_ID, SETTLE_DELAY_S
from order_scanner.errors import DiscardReason, ScanError
from order_scanner.models import KeyEvent, OrderDraft, RecognizedCode
from order_scanner.notifier import Notifier
from order_scanner.resolver import ProductResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    session: int


@dataclass(frozen=True)
class Composing:
    session: int


ListeningMode = Idle | Composing


@dataclass
class Subscription:
    """The single live binding between the key stream and a context."""

    mode: ListeningMode
    classifier: StreamClassifier


@dataclass
class _Handoff:
    token: int
    codes: list[RecognizedCode] = field(default_factory=list)
    timer: TimerHandle | None = None


class CompositionSurface(Protocol):
    @property
    def is_open(self) -> bool: ...

    def open(self) -> None: ...


class ScannerContextRouter:
    """Owns the listening subscription and the draft of the open surface."""

    def __init__(
        self,
        clock: Clock,
        resolver: ProductResolver,
        accumulator: OrderLineAccumulator,
        notifier: Notifier,
        surface: CompositionSurface,
        *,
        settle_delay: float = SETTLE_DELAY_S,
        quantity_field_id: str = QUANTITY_FIELD_ID,
        on_draft_change: Callable[[OrderDraft], None] | None = None,
        on_buffer: Callable[[str], None] | None = None,
        classifier_options: dict[str, float | int] | None = None,
    ) -> None:
        self._clock = clock
        self.resolver = resolver
        self.accumulator = accumulator
        self.notifier = notifier
        self._surface = surface
        self._settle_delay = settle_delay
        self._quantity_field_id = quantity_field_id
        self._on_draft_change = on_draft_change
        self._on_buffer = on_buffer
        self._classifier_options = dict(classifier_options or {})
        self._sessions = itertools.count(1)
        self._handoff_tokens = itertools.count(1)
        self._subscription: Subscription | None = None
        self._draft: OrderDraft | None = None
        self._handoff: _Handoff | None = None

    @property
    def mode(self) -> ListeningMode | None:
        return self._subscription.mode if self._subscription is not None else None

    @property
    def classifier(self) -> StreamClassifier | None:
        return self._subscription.classifier if self._subscription is not None else None

    @property
    def draft(self) -> OrderDraft | None:
        return self._draft

    @property
    def is_composing(self) -> bool:
        return isinstance(self.mode, Composing)

    @property
    def has_pending_handoff(self) -> bool:
        return self._handoff is not None

    # =========================================================================
    # CONTEXT LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Begin listening in whichever context matches the surface."""
        if self._subscription is not None:
            return
        if self._surface.is_open:
            self._draft = OrderDraft.empty(date.today())
            self._activate(Composing(next(self._sessions)))
        else:
            self._activate(Idle(next(self._sessions)))

    def stop(self) -> None:
        self._drop_handoff()
        self._deactivate()
        self._draft = None

    def surface_opened(self, draft: OrderDraft | None = None) -> OrderDraft:
        """Switch to the Composing context with a fresh (or given) draft."""
        self._deactivate()
        self._draft = draft if draft is not None else OrderDraft.empty(date.today())
        self._activate(Composing(next(self._sessions)))
        return self._draft

    def surface_ready(self) -> None:
        """The open surface can take mutations; flush a pending idle scan."""
        handoff = self._handoff
        if handoff is None or not self.is_composing:
            return
        logger.debug(f"handoff_ready token={handoff.token} queued={len(handoff.codes)}")
        self._flush_handoff()

    def surface_closed(self) -> OrderDraft | None:
        """Switch back to Idle and hand back the final draft."""
        self._drop_handoff()
        self._deactivate()
        final = self._draft
        self._draft = None
        self._activate(Idle(next(self._sessions)))
        return final

    def _activate(self, mode: ListeningMode) -> None:
        if self._subscription is not None:
            raise RuntimeError("A scanner subscription is already live")
        classifier = StreamClassifier(
            self._clock,
            quantity_field_id=self._quantity_field_id,
            on_buffer=self._on_buffer,
            **self._classifier_options,  # type: ignore[arg-type]
        )
        self._subscription = Subscription(mode=mode, classifier=classifier)
        logger.debug(f"context_activate mode={type(mode).__name__} session={mode.session}")

    def _deactivate(self) -> None:
        subscription = self._subscription
        if subscription is None:
            return
        self._subscription = None
        subscription.classifier.reset(DiscardReason.CONTEXT_TEARDOWN)
        logger.debug(f"context_deactivate mode={type(subscription.mode).__name__} session={subscription.mode.session}")

    # =========================================================================
    # KEY ROUTING
    # =========================================================================

    def feed(self, event: KeyEvent) -> Classification:
        subscription = self._subscription
        if subscription is None:
            return IGNORED

        if isinstance(subscription.mode, Idle):
            # Keys typed into any visible input on the idle page are not scans.
            if event.target_kind is not None:
                return IGNORED
            result = subscription.classifier.feed(event)
            if result.verdict is Verdict.COMMIT and result.code is not None:
                self._begin_handoff(result.code)
            return result

        result = subscription.classifier.feed(event)
        if result.verdict is Verdict.COMMIT and result.code is not None:
            # Idle scans still waiting on the form go in first.
            self._flush_handoff()
            self._dispatch(result.code)
        return result

    def apply(self, change: Callable[[OrderDraft], OrderDraft]) -> OrderDraft:
        """Run a manual edit against the open draft."""
        if not self.is_composing or self._draft is None:
            raise RuntimeError("No order is being composed")
        self._flush_handoff()
        self._set_draft(change(self._draft))
        return self._draft

    def _dispatch(self, code: RecognizedCode) -> None:
        if not self.is_composing or self._draft is None:
            logger.debug(f"dispatch_dropped code={code} reason=not_composing")
            return
        try:
            product = self.resolver.resolve(code)
        except ScanError as exc:
            self.notifier.error(str(exc))
            return
        self._set_draft(self.accumulator.add_scanned(self._draft, product))

    def _set_draft(self, draft: OrderDraft) -> None:
        self._draft = draft
        if self._on_draft_change is not None:
            self._on_draft_change(draft)

    # =========================================================================
    # IDLE -> COMPOSING HAND-OFF
    # =========================================================================

    def _begin_handoff(self, code: RecognizedCode) -> None:
        handoff = self._handoff
        if handoff is not None:
            # The form is still opening; later scans queue behind the first.
            handoff.codes.append(code)
            logger.debug(f"handoff_queued code={code} token={handoff.token} queued={len(handoff.codes)}")
            return

        token = next(self._handoff_tokens)
        handoff = _Handoff(token=token, codes=[code])
        self._handoff = handoff
        handoff.timer = self._clock.call_later(self._settle_delay, lambda: self._on_settle_timeout(token))
        logger.debug(f"handoff_begin code={code} token={token}")
        if not self._surface.is_open:
            self._surface.open()

    def _on_settle_timeout(self, token: int) -> None:
        handoff = self._handoff
        if handoff is None or handoff.token != token:
            logger.debug(f"handoff_timer_race token={token}")
            return
        if not self.is_composing:
            self._handoff = None
            logger.warning(f"handoff_expired codes={','.join(handoff.codes)} reason=surface_not_open")
            self.notifier.error("Order form did not open; scan again")
            return
        logger.debug(f"handoff_settled token={token}")
        self._flush_handoff()

    def _flush_handoff(self) -> None:
        """Dispatch every queued idle scan, oldest first."""
        handoff = self._handoff
        if handoff is None:
            return
        self._handoff = None
        if handoff.timer is not None:
            handoff.timer.cancel()
        for code in handoff.codes:
            self._dispatch(code)

    def _drop_handoff(self) -> None:
        handoff = self._handoff
        if handoff is None:
            return
        self._handoff = None
        if handoff.timer is not None:
            handoff.timer.cancel()
        logger.warning(f"handoff_dropped codes={','.join(handoff.codes)}")
