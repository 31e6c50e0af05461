"""Envelope bus shared by the content store and the manifest processor.

Publishers send `(event, envelope)` pairs: the store publishes every action
it dispatches, the processor publishes `diag.*` envelopes. A subscription
either filters on a set of event names or receives everything (the JSONL
sink does).
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterable
from typing import Any

from nodemanifest.core.logging import get_logger

_logger = get_logger(__name__)

EnvelopeHandler = Callable[[str, dict[str, Any]], None]
Unsubscribe = Callable[[], None]


class EventBus:
    def __init__(self) -> None:
        self._subscriptions: list[tuple[frozenset[str] | None, EnvelopeHandler]] = []

    def subscribe(
        self, handler: EnvelopeHandler, *, events: Iterable[str] | None = None
    ) -> Unsubscribe:
        """Register `handler` for `events`, or for every event when None.

        Returns:
            Callable that removes this subscription
        """
        subscription = (None if events is None else frozenset(events), handler)
        self._subscriptions.append(subscription)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._subscriptions.remove(subscription)

        return _unsubscribe

    def publish(self, event: str, envelope: dict[str, Any]) -> None:
        """Deliver to matching handlers; a failing handler is logged and skipped."""
        for events, handler in list(self._subscriptions):
            if events is not None and event not in events:
                continue
            try:
                handler(event, envelope)
            except Exception as e:
                _logger.error(
                    f"event handler failed: event={event} handler={handler!r} "
                    f"error={type(e).__name__}: {e}"
                )

    def clear(self) -> None:
        self._subscriptions.clear()


_global_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    global _global_bus
    if _global_bus is None:
        _global_bus = EventBus()
    return _global_bus
