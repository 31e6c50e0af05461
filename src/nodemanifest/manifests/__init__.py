from nodemanifest.manifests.api import NodeManifestService, create_node_manifest
from nodemanifest.manifests.mapping_warnings import warn_about_node_manifest_mapping_problems
from nodemanifest.manifests.model import (
    FinalManifest,
    FoundPageBy,
    MappingWarning,
    PageRef,
    ResolvedPage,
)
from nodemanifest.manifests.processor import (
    BatchResult,
    process_node_manifest,
    process_node_manifests,
)
from nodemanifest.manifests.resolver import find_page_owned_by_node_id
from nodemanifest.manifests.writer import FileManifestWriter, ManifestWriter

__all__ = [
    "BatchResult",
    "FileManifestWriter",
    "FinalManifest",
    "FoundPageBy",
    "ManifestWriter",
    "MappingWarning",
    "NodeManifestService",
    "PageRef",
    "ResolvedPage",
    "create_node_manifest",
    "find_page_owned_by_node_id",
    "process_node_manifest",
    "process_node_manifests",
    "warn_about_node_manifest_mapping_problems",
]
