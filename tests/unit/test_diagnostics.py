from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

import nodemanifest.core.diagnostics as diagnostics
from nodemanifest.core.config import ConfigResolver
from nodemanifest.core.diagnostics import build_envelope, emit_diag, install_jsonl_sink, is_envelope
from nodemanifest.core.events import EventBus, get_event_bus


@pytest.fixture(autouse=True)
def _reset_sink_guard():
    diagnostics._SINK_INSTALLED = False  # type: ignore[attr-defined]
    yield
    diagnostics._SINK_INSTALLED = False  # type: ignore[attr-defined]


def _resolver(tmp_path: Path, enabled: bool) -> ConfigResolver:
    return ConfigResolver(
        cli_args={
            "program": {"directory": str(tmp_path)},
            "diagnostics": {"enabled": enabled},
        },
        user_config_path=tmp_path / "user.yaml",
        system_config_path=tmp_path / "system.yaml",
    )


def test_envelope_shape() -> None:
    envelope = build_envelope(event="e", component="c", operation="o", data={"k": 1})

    assert is_envelope(envelope)
    assert envelope["timestamp"].endswith("Z")
    assert not is_envelope({"event": "e"})


def test_emit_diag_publishes_envelope() -> None:
    bus = EventBus()
    seen: list[tuple[str, dict[str, Any]]] = []
    bus.subscribe(lambda event, data: seen.append((event, data)))

    emit_diag("diag.x", component="c", operation="o", data={"n": 1}, bus=bus)

    [(event, data)] = seen
    assert event == "diag.x"
    assert data["data"] == {"n": 1}


def test_disabled_sink_writes_nothing(tmp_path: Path) -> None:
    install_jsonl_sink(resolver=_resolver(tmp_path, enabled=False))

    get_event_bus().publish("evt", {"k": "v"})

    assert not (tmp_path / ".cache" / "diagnostics").exists()


def test_enabled_sink_appends_jsonl_and_wraps_plain_payloads(tmp_path: Path) -> None:
    install_jsonl_sink(resolver=_resolver(tmp_path, enabled=True))
    bus = get_event_bus()

    envelope = build_envelope(event="a", component="store", operation="dispatch", data={})
    bus.publish("a", envelope)
    bus.publish("b", {"k": "v"})

    out = tmp_path / ".cache" / "diagnostics" / "diagnostics.jsonl"
    lines = [json.loads(line) for line in out.read_text(encoding="utf-8").splitlines()]
    assert lines[0] == envelope
    assert lines[1]["event"] == "b"
    assert lines[1]["component"] == "unknown"
    assert lines[1]["data"] == {"k": "v"}


def test_install_is_idempotent(tmp_path: Path) -> None:
    bus = EventBus()
    resolver = _resolver(tmp_path, enabled=True)
    install_jsonl_sink(resolver=resolver, bus=bus)
    install_jsonl_sink(resolver=resolver, bus=bus)

    bus.publish("once", {})

    out = tmp_path / ".cache" / "diagnostics" / "diagnostics.jsonl"
    assert len(out.read_text(encoding="utf-8").splitlines()) == 1


def test_failing_event_handler_is_isolated() -> None:
    bus = EventBus()
    received: list[dict[str, Any]] = []

    def _boom(_event: str, _envelope: dict[str, Any]) -> None:
        raise RuntimeError("handler failure")

    bus.subscribe(_boom, events=["evt"])
    bus.subscribe(lambda _event, envelope: received.append(envelope), events=["evt"])

    bus.publish("evt", {"x": 1})

    assert received == [{"x": 1}]


def test_event_filter_and_unsubscribe() -> None:
    bus = EventBus()
    seen: list[str] = []
    unsubscribe = bus.subscribe(lambda event, _envelope: seen.append(event), events=["a", "b"])

    bus.publish("a", {})
    bus.publish("c", {})
    unsubscribe()
    bus.publish("b", {})

    assert seen == ["a"]
