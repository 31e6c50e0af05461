"""Warnings for weak or missing node -> page mappings.

Strong strategies (filesystem route API, ownerNodeId) stay silent. Weaker
ones produce exactly one warning explaining how the plugin can make the
mapping reliable.
"""

from __future__ import annotations

from typing import Any, assert_never

from nodemanifest.core.errors import UnknownFoundPageByError
from nodemanifest.core.logging import NodeManifestLogger, get_logger
from nodemanifest.manifests.model import FoundPageBy, MappingWarning
from nodemanifest.store.model import ManifestRequest

SUCCESS_MESSAGE = "success"

_LOGGER = get_logger(__name__)


def _coerce_found_page_by(value: Any) -> FoundPageBy:
    if isinstance(value, FoundPageBy):
        return value
    if isinstance(value, str):
        try:
            return FoundPageBy(value)
        except ValueError:
            pass
    raise UnknownFoundPageByError(value)


def build_possible_messages(
    input_manifest: ManifestRequest, page_path: str | None
) -> dict[FoundPageBy, str]:
    """Return the warning catalogue for one manifest request."""
    intro = (
        f"Plugin {input_manifest.plugin_name} called unstable_createNodeManifest() "
        f'for node id "{input_manifest.node.id}" with a manifest id of '
        f'"{input_manifest.manifest_id}"'
    )
    return {
        FoundPageBy.NONE: (
            f"{intro} but we couldn't find a page for this node. "
            "If you want a manifest to be created for a node (for previews or other "
            "purposes), ensure that a page was created for it and that an ownerNodeId "
            "is passed to createPage() when the page is not built by the filesystem "
            "route API."
        ),
        FoundPageBy.CONTEXT_ID: (
            f"{intro} but no page declared this node as its ownerNodeId. "
            f"The page at {page_path} was matched because its pageContext.id equals the "
            "node id. This fallback is fragile: pass ownerNodeId to createPage() for "
            "this page instead of relying on pageContext.id."
        ),
        FoundPageBy.QUERY_TRACKING: (
            f"{intro} but no page declared this node as its ownerNodeId. "
            f"The page at {page_path} was matched because it is the first page where "
            "this node is queried. Which page queries a node first can change between "
            "builds, so this mapping is non-deterministic across rebuilds. Pass "
            "ownerNodeId to createPage() to pin the node to its page."
        ),
    }


def warn_about_node_manifest_mapping_problems(
    input_manifest: ManifestRequest,
    page_path: str | None,
    found_page_by: FoundPageBy | str,
    *,
    logger: NodeManifestLogger | None = None,
) -> MappingWarning:
    """Warn when a node manifest relies on a weak page lookup strategy.

    Args:
        input_manifest: The request being processed
        page_path: Path of the resolved page (None when no page was found)
        found_page_by: Strategy that resolved the page

    Returns:
        The selected message (or "success") and the full message catalogue

    Raises:
        UnknownFoundPageByError: If found_page_by is not a known strategy
    """
    strategy = _coerce_found_page_by(found_page_by)
    log = logger or _LOGGER

    possible_messages = build_possible_messages(input_manifest, page_path)

    if strategy is FoundPageBy.FILESYSTEM_ROUTE_API or strategy is FoundPageBy.OWNER_NODE_ID:
        return MappingWarning(message=SUCCESS_MESSAGE, possible_messages=possible_messages)
    elif (
        strategy is FoundPageBy.CONTEXT_ID
        or strategy is FoundPageBy.QUERY_TRACKING
        or strategy is FoundPageBy.NONE
    ):
        message = possible_messages[strategy]
    else:
        assert_never(strategy)

    log.warning(message)
    return MappingWarning(message=message, possible_messages=possible_messages)
