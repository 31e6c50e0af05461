"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Allow running the suite from a plain checkout (src layout).
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))

from nodemanifest.core.events import EventBus, get_event_bus  # noqa: E402
from nodemanifest.core.log_bus import LogRecord, get_log_bus  # noqa: E402
from nodemanifest.core.logging import VerbosityLevel, set_colors, set_verbosity  # noqa: E402
from nodemanifest.store import ContentStore  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_logging_state():
    """Keep verbosity and bus subscriptions from leaking between tests."""
    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(False)
    get_log_bus().clear()
    get_event_bus().clear()
    yield
    get_log_bus().clear()
    get_event_bus().clear()
    set_verbosity(VerbosityLevel.NORMAL)


@pytest.fixture
def log_records() -> list[LogRecord]:
    """Collect every record published by the core logger."""
    collected: list[LogRecord] = []
    get_log_bus().subscribe(collected.append)
    return collected


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def store(tmp_path, event_bus) -> ContentStore:
    """Empty content store rooted at a temporary program directory."""
    return ContentStore(program_directory=tmp_path, bus=event_bus)

