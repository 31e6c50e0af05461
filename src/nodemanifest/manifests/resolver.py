"""Find the page that renders a node.

Four attribution strategies are tried in strict priority order:

1. filesystem route API: the page route was derived from the node
2. ownerNodeId: the page creator declared the owning node
3. context.id: legacy convention, the page context carries the node id
4. query tracking: the first page seen querying the node

The first strategy that matches wins. The lookup reads the page registry only.
"""

from __future__ import annotations

from collections.abc import Callable

from nodemanifest.manifests.model import FoundPageBy, PageRef, ResolvedPage
from nodemanifest.store.content_store import ContentStore, PageRegistry
from nodemanifest.store.model import STATIC_QUERY_PREFIX, Page

PageMatcher = Callable[[Page, str], bool]

_OWNERSHIP_MATCHERS: tuple[tuple[FoundPageBy, PageMatcher], ...] = (
    (FoundPageBy.FILESYSTEM_ROUTE_API, lambda page, node_id: page.fs_route_node_id == node_id),
    (FoundPageBy.OWNER_NODE_ID, lambda page, node_id: page.owner_node_id == node_id),
    (FoundPageBy.CONTEXT_ID, lambda page, node_id: page.context.get("id") == node_id),
)


def _first_queried_page(pages: PageRegistry, node_id: str) -> Page | None:
    for query_id in pages.queried_by(node_id):
        if query_id.startswith(STATIC_QUERY_PREFIX):
            continue
        page = pages.get(query_id)
        if page is not None:
            return page
    return None


def find_page_owned_by_node_id(store: ContentStore, node_id: str) -> ResolvedPage:
    """Return the best page for `node_id` and the strategy that found it."""
    pages = store.pages
    candidates = list(pages.pages())

    for found_page_by, matches in _OWNERSHIP_MATCHERS:
        for page in candidates:
            if matches(page, node_id):
                return ResolvedPage(page=PageRef(path=page.path), found_page_by=found_page_by)

    queried = _first_queried_page(pages, node_id)
    if queried is not None:
        return ResolvedPage(page=PageRef(path=queried.path), found_page_by=FoundPageBy.QUERY_TRACKING)

    return ResolvedPage(page=None, found_page_by=FoundPageBy.NONE)
