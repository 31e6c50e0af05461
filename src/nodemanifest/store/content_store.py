"""In-process content store consumed by the node manifest engine.

Holds the node registry, the page registry (with query tracking) and the
pending node manifest queue. Actions dispatched to the store are published on
the event bus as diagnostic envelopes.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from nodemanifest.core.diagnostics import build_envelope
from nodemanifest.core.events import EventBus, Unsubscribe, get_event_bus
from nodemanifest.core.logging import get_logger
from nodemanifest.store.model import ManifestRequest, Page, StoreAction

_LOGGER = get_logger(__name__)

COMPONENT = "store"

ActionHandler = Callable[[StoreAction, dict[str, Any]], None]


class PendingManifestQueue:
    """Buffer of manifest requests not yet written.

    `take_all()` reads and clears in one step, so requests enqueued while a
    batch is running stay queued for the next batch.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[ManifestRequest] = []

    def enqueue(self, request: ManifestRequest) -> None:
        with self._lock:
            self._items.append(request)

    def take_all(self) -> list[ManifestRequest]:
        with self._lock:
            items = self._items
            self._items = []
        return items

    def snapshot(self) -> list[ManifestRequest]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class PageRegistry:
    """Registered pages plus the node -> page query tracking index."""

    def __init__(self) -> None:
        self._pages: dict[str, Page] = {}
        self._queried_by_node: dict[str, list[str]] = {}

    def create_page(self, page: Page) -> None:
        # Re-creating a path replaces the page but keeps its registration order.
        self._pages[page.path] = page

    def delete_page(self, path: str) -> None:
        self._pages.pop(path, None)

    def get(self, path: str) -> Page | None:
        return self._pages.get(path)

    def pages(self) -> Iterator[Page]:
        """Iterate pages in registration order."""
        return iter(list(self._pages.values()))

    def track_query(self, node_id: str, query_id: str) -> None:
        """Record that `query_id` (a page path or static query id) read `node_id`."""
        seen = self._queried_by_node.setdefault(node_id, [])
        if query_id not in seen:
            seen.append(query_id)

    def queried_by(self, node_id: str) -> list[str]:
        """Query ids that read `node_id`, in the order they were first seen."""
        return list(self._queried_by_node.get(node_id, []))

    def __len__(self) -> int:
        return len(self._pages)


class ContentStore:
    def __init__(
        self,
        program_directory: Path | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._program_directory = program_directory if program_directory is not None else Path.cwd()
        self._bus = bus
        self._nodes: dict[str, dict[str, Any]] = {}
        self._pages = PageRegistry()
        self._pending = PendingManifestQueue()
        self._dispatched: list[tuple[StoreAction, dict[str, Any]]] = []

    @property
    def program_directory(self) -> Path:
        return self._program_directory

    @property
    def pages(self) -> PageRegistry:
        return self._pages

    @property
    def bus(self) -> EventBus:
        return self._bus if self._bus is not None else get_event_bus()

    # Nodes

    def create_node(self, node: dict[str, Any]) -> None:
        node_id = node.get("id") if isinstance(node, dict) else None
        if not isinstance(node_id, str) or node_id == "":
            raise ValueError("node must be a mapping with a non-empty string 'id'")
        self._nodes[node_id] = dict(node)

    def get_node(self, node_id: str) -> dict[str, Any] | None:
        return self._nodes.get(node_id)

    def delete_node(self, node_id: str) -> None:
        self._nodes.pop(node_id, None)

    # Pending node manifests

    def enqueue_manifest(self, request: ManifestRequest) -> None:
        self._pending.enqueue(request)

    def take_pending_manifests(self) -> list[ManifestRequest]:
        return self._pending.take_all()

    def pending_manifests(self) -> list[ManifestRequest]:
        return self._pending.snapshot()

    # Notifications

    def dispatch(self, action: StoreAction, data: dict[str, Any] | None = None) -> None:
        payload = dict(data or {})
        self._dispatched.append((action, payload))
        _LOGGER.debug(f"store dispatch: action={action.value} data={payload}")
        envelope = build_envelope(
            event=action.value,
            component=COMPONENT,
            operation="dispatch",
            data=payload,
        )
        self.bus.publish(action.value, envelope)

    @property
    def dispatched_actions(self) -> list[tuple[StoreAction, dict[str, Any]]]:
        return list(self._dispatched)

    def subscribe(self, handler: ActionHandler, *actions: StoreAction) -> Unsubscribe:
        """Call `handler(action, data)` for dispatched `actions` (all actions when empty)."""

        def _on_envelope(event: str, envelope: dict[str, Any]) -> None:
            handler(StoreAction(event), envelope["data"])

        events = actions or tuple(StoreAction)
        return self.bus.subscribe(_on_envelope, events=[action.value for action in events])
