"""Structured diagnostics envelope + JSONL sink.

This module provides:
- A canonical envelope schema for diagnostic events.
- A fail-safe emission helper that publishes envelopes on the event bus.
- A JSONL sink that can be enabled/disabled via ConfigResolver.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from nodemanifest.core.config import ConfigResolver
from nodemanifest.core.errors import ConfigError
from nodemanifest.core.events import EventBus, get_event_bus
from nodemanifest.core.logging import get_logger

_logger = get_logger(__name__)

ENVELOPE_KEYS = frozenset({"event", "component", "operation", "timestamp", "data"})


def build_envelope(
    *,
    event: str,
    component: str,
    operation: str,
    data: dict[str, Any],
) -> dict[str, Any]:
    """Build the canonical diagnostics envelope.

    Schema:
        {
          "event": "<string>",
          "component": "<string>",
          "operation": "<string>",
          "timestamp": "<iso8601 utc>",
          "data": { ... }
        }

    Timestamp is emitted in UTC with a trailing 'Z'.
    """
    ts = datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return {
        "event": event,
        "component": component,
        "operation": operation,
        "timestamp": ts,
        "data": data,
    }


def emit_diag(
    event: str,
    *,
    component: str,
    operation: str,
    data: dict[str, Any],
    bus: EventBus | None = None,
) -> None:
    """Publish a diagnostic envelope. Never raises."""
    try:
        envelope = build_envelope(event=event, component=component, operation=operation, data=data)
        (bus or get_event_bus()).publish(event, envelope)
    except Exception as e:
        _logger.warning(f"diagnostic emission failed: {type(e).__name__}: {e}")


def is_envelope(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    if set(obj.keys()) != ENVELOPE_KEYS:
        return False
    if not all(
        isinstance(obj.get(k), str) for k in ("event", "component", "operation", "timestamp")
    ):
        return False
    return isinstance(obj.get("data"), dict)


_SINK_INSTALLED = False


def install_jsonl_sink(*, resolver: ConfigResolver, bus: EventBus | None = None) -> None:
    """Install the JSONL diagnostics sink subscriber.

    Idempotent: registers exactly once per process.

    Sink path:
        <cache_root>/diagnostics/diagnostics.jsonl

    When diagnostics.enabled is false the subscriber performs no file IO.
    """
    global _SINK_INSTALLED
    if _SINK_INSTALLED:
        return

    def _on_any_event(event: str, data: dict[str, Any]) -> None:
        try:
            if not resolver.resolve_bool("diagnostics.enabled"):
                return
            out_path = resolver.resolve_cache_root() / "diagnostics" / "diagnostics.jsonl"
        except ConfigError as e:
            _logger.warning(f"Diagnostics sink disabled by config error: {e}")
            return

        if is_envelope(data):
            payload = data
        else:
            payload = build_envelope(
                event=event,
                component="unknown",
                operation="unknown",
                data=data,
            )

        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            line = json.dumps(
                payload,
                ensure_ascii=True,
                separators=(",", ":"),
                sort_keys=True,
                default=str,
            )
            with out_path.open("a", encoding="utf-8") as f:
                f.write(line)
                f.write("\n")
        except Exception as e:
            _logger.warning(f"Diagnostics sink write failed: {type(e).__name__}: {e}")

    (bus or get_event_bus()).subscribe(_on_any_event)
    _SINK_INSTALLED = True
