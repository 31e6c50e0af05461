"""nodemanifest - map content nodes to the pages that render them.

Plugins queue node manifests; each batch resolves the page for every queued
node and writes `<cache>/node-manifests/<plugin>/<manifest id>.json` for
preview services to read.
"""

__version__ = "1.0.0"

from nodemanifest.manifests import (
    BatchResult,
    FileManifestWriter,
    FinalManifest,
    FoundPageBy,
    ManifestWriter,
    MappingWarning,
    NodeManifestService,
    create_node_manifest,
    find_page_owned_by_node_id,
    process_node_manifest,
    process_node_manifests,
    warn_about_node_manifest_mapping_problems,
)
from nodemanifest.store import ContentStore, ManifestRequest, NodeRef, Page

__all__ = [
    # Store
    "ContentStore",
    "ManifestRequest",
    "NodeRef",
    "Page",
    # Manifests
    "BatchResult",
    "FileManifestWriter",
    "FinalManifest",
    "FoundPageBy",
    "ManifestWriter",
    "MappingWarning",
    "NodeManifestService",
    "create_node_manifest",
    "find_page_owned_by_node_id",
    "process_node_manifest",
    "process_node_manifests",
    "warn_about_node_manifest_mapping_problems",
]
