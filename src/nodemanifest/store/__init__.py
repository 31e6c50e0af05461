from nodemanifest.store.content_store import ContentStore, PageRegistry, PendingManifestQueue
from nodemanifest.store.model import ManifestRequest, NodeRef, Page, StoreAction

__all__ = [
    "ContentStore",
    "ManifestRequest",
    "NodeRef",
    "Page",
    "PageRegistry",
    "PendingManifestQueue",
    "StoreAction",
]
