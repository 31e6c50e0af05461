from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

STATIC_QUERY_PREFIX = "sq--"


class StoreAction(StrEnum):
    NODE_MANIFESTS_PROCESSED = "node_manifests.processed"


@dataclass(frozen=True, slots=True)
class NodeRef:
    id: str


@dataclass(frozen=True, slots=True)
class ManifestRequest:
    """A plugin's request to write a manifest for one node.

    Only the node id is kept; the full node is read back from the store when
    the request is processed.
    """

    plugin_name: str
    manifest_id: str
    node: NodeRef

    def to_dict(self) -> dict[str, Any]:
        return {
            "plugin_name": self.plugin_name,
            "manifest_id": self.manifest_id,
            "node": {"id": self.node.id},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ManifestRequest:
        node = data.get("node") or {}
        return cls(
            plugin_name=str(data["plugin_name"]),
            manifest_id=str(data["manifest_id"]),
            node=NodeRef(id=str(node["id"])),
        )


@dataclass(slots=True)
class Page:
    path: str
    owner_node_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)
    # Set when the page was created by the filesystem route API from a node.
    fs_route_node_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Page:
        context = data.get("context") or {}
        if not isinstance(context, dict):
            raise ValueError(f"page context must be a mapping, got {type(context).__name__}")
        owner = data.get("owner_node_id")
        fs_node = data.get("fs_route_node_id")
        return cls(
            path=str(data["path"]),
            owner_node_id=None if owner is None else str(owner),
            context=dict(context),
            fs_route_node_id=None if fs_node is None else str(fs_node),
        )
