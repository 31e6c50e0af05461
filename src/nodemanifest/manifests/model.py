from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class FoundPageBy(StrEnum):
    """How the page for a node was found, strongest strategy first."""

    FILESYSTEM_ROUTE_API = "filesystem-route-api"
    OWNER_NODE_ID = "ownerNodeId"
    CONTEXT_ID = "context.id"
    QUERY_TRACKING = "queryTracking"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class PageRef:
    path: str


@dataclass(frozen=True, slots=True)
class ResolvedPage:
    page: PageRef | None
    found_page_by: FoundPageBy

    def __post_init__(self) -> None:
        if (self.page is None) != (self.found_page_by is FoundPageBy.NONE):
            raise ValueError(
                f"page must be None exactly when found_page_by is NONE "
                f"(page={self.page!r}, found_page_by={self.found_page_by.value})"
            )

    @property
    def page_path(self) -> str | None:
        return None if self.page is None else self.page.path


@dataclass(frozen=True, slots=True)
class FinalManifest:
    """The body persisted for one node manifest."""

    page: PageRef | None
    node: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": {"path": None if self.page is None else self.page.path},
            "node": dict(self.node),
        }


@dataclass(frozen=True, slots=True)
class MappingWarning:
    message: str
    possible_messages: dict[FoundPageBy, str]
