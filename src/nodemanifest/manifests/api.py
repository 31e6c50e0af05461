from __future__ import annotations

from typing import Any

from nodemanifest.core.errors import ManifestRequestError
from nodemanifest.core.logging import get_logger
from nodemanifest.manifests.processor import BatchResult, process_node_manifests
from nodemanifest.manifests.writer import ManifestWriter, is_path_segment
from nodemanifest.store.content_store import ContentStore
from nodemanifest.store.model import ManifestRequest, NodeRef

_LOGGER = get_logger(__name__)


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or value.strip() == "":
        raise ManifestRequestError(
            f"unstable_createNodeManifest requires a non-empty string {name}, got {value!r}"
        )
    return value


def create_node_manifest(
    store: ContentStore,
    *,
    plugin_name: str,
    manifest_id: str,
    node: dict[str, Any],
) -> ManifestRequest:
    """Queue a node manifest for the next batch.

    Raises:
        ManifestRequestError: If the plugin name, manifest id or node id is invalid
    """
    _require_text("plugin name", plugin_name)
    if not is_path_segment(plugin_name):
        raise ManifestRequestError(
            f"Plugin name {plugin_name!r} must not contain path separators or be . or ..",
            suggestion="Manifests are stored per plugin in a directory named after the plugin",
        )
    _require_text("manifestId", manifest_id)
    if not isinstance(node, dict):
        raise ManifestRequestError(
            f"Plugin {plugin_name} called unstable_createNodeManifest without a node object"
        )
    node_id = _require_text("node.id", node.get("id"))

    request = ManifestRequest(
        plugin_name=plugin_name,
        manifest_id=manifest_id,
        node=NodeRef(id=node_id),
    )
    store.enqueue_manifest(request)
    _LOGGER.debug(
        f"node manifest queued: plugin={plugin_name} manifest_id={manifest_id} node_id={node_id}"
    )
    return request


class NodeManifestService:
    def __init__(self, store: ContentStore, writer: ManifestWriter | None = None) -> None:
        self._store = store
        self._writer = writer

    @property
    def store(self) -> ContentStore:
        return self._store

    def create_node_manifest(
        self, *, plugin_name: str, manifest_id: str, node: dict[str, Any]
    ) -> ManifestRequest:
        return create_node_manifest(
            self._store, plugin_name=plugin_name, manifest_id=manifest_id, node=node
        )

    def pending_count(self) -> int:
        return len(self._store.pending_manifests())

    async def process_all(self) -> BatchResult:
        return await process_node_manifests(self._store, writer=self._writer)
