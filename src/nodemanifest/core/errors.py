"""Error types for node manifest processing."""

from __future__ import annotations

from typing import Any


class NodeManifestError(Exception):
    """Base exception for all nodemanifest errors."""

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}\nSuggestion: {self.suggestion}"
        return self.message


class ConfigError(NodeManifestError):
    """Configuration error."""

    pass


class ManifestRequestError(NodeManifestError):
    """A plugin passed an invalid node manifest request."""

    pass


class UnknownFoundPageByError(NodeManifestError):
    """A resolver outcome has no entry in the mapping warning catalogue.

    Raised when the resolver strategies and the warning catalogue are out of
    sync. This is an internal bug, never a user-facing condition.
    """

    def __init__(self, found_page_by: Any) -> None:
        self.found_page_by = found_page_by
        super().__init__(
            f"Unknown foundPageBy value {found_page_by!r} reached the node manifest warnings",
            "Add the new page lookup strategy to the mapping warning catalogue",
        )


class ManifestWriteError(NodeManifestError):
    """Writing a node manifest file failed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(
            f"Cannot write node manifest '{path}': {reason}",
            "Check that the cache directory is writable and the disk is not full",
        )


class ManifestBatchError(NodeManifestError):
    """One or more entries of a node manifest batch failed."""

    def __init__(self, failures: list[tuple[Any, BaseException]]) -> None:
        self.failures = list(failures)
        lines = [
            f"- {request.plugin_name}/{request.manifest_id}: {type(exc).__name__}: {exc}"
            for request, exc in self.failures
        ]
        super().__init__(
            f"{len(self.failures)} node manifest(s) failed to process:\n" + "\n".join(lines)
        )
