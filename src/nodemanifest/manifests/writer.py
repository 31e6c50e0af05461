"""Persist node manifests as JSON files.

Layout:
    <cache_root>/node-manifests/<plugin_name>/<manifest_id>.json

A manifest id is one file name: percent signs, slashes and backslashes in it
are percent-encoded.
A plugin name that is not a single path segment is refused.

Files are written to a temporary sibling first and renamed into place, so a
reader sees either the previous manifest or the new one, never a partial file.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import uuid
from pathlib import Path
from typing import Protocol

from nodemanifest.core.config import ConfigResolver
from nodemanifest.core.errors import ManifestWriteError
from nodemanifest.core.logging import get_logger
from nodemanifest.manifests.model import FinalManifest

_LOGGER = get_logger(__name__)

NODE_MANIFESTS_DIR = "node-manifests"

# Longest file name most filesystems accept, in bytes.
MAX_FILE_NAME_BYTES = 255

_FILE_NAME_ESCAPES = str.maketrans({"%": "%25", "/": "%2F", "\\": "%5C", "\0": "%00"})


class ManifestWriter(Protocol):
    """Persists one final manifest per (plugin, manifest id)."""

    async def ensure_directory(self, plugin_name: str) -> Path: ...

    async def write(
        self, plugin_name: str, manifest_id: str, final_manifest: FinalManifest
    ) -> Path: ...


def is_path_segment(name: str) -> bool:
    """True if `name` can be joined onto a directory without leaving it."""
    return name not in ("", ".", "..") and not any(c in name for c in "/\\\0")


def manifest_file_name(manifest_id: str) -> str:
    """File name for a manifest id; over-long ids are replaced by their sha256."""
    name = f"{manifest_id.translate(_FILE_NAME_ESCAPES)}.json"
    if len(name.encode("utf-8")) <= MAX_FILE_NAME_BYTES:
        return name
    digest = hashlib.sha256(manifest_id.encode("utf-8")).hexdigest()
    return f"{digest}.json"


def _atomic_write_text(path: Path, text: str) -> None:
    tmp = path.with_name(f".{uuid.uuid4().hex}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise


class FileManifestWriter:
    def __init__(self, cache_root: Path) -> None:
        self._cache_root = cache_root

    @classmethod
    def for_program_directory(cls, program_directory: Path) -> FileManifestWriter:
        """Writer rooted at the configured `node_manifests.cache_dir` of `program_directory`."""
        resolver = ConfigResolver(cli_args={"program": {"directory": str(program_directory)}})
        return cls(resolver.resolve_cache_root())

    @property
    def root(self) -> Path:
        return self._cache_root / NODE_MANIFESTS_DIR

    def plugin_dir(self, plugin_name: str) -> Path:
        if not is_path_segment(plugin_name):
            raise ManifestWriteError(str(self.root), f"invalid plugin name {plugin_name!r}")
        return self.root / plugin_name

    def manifest_path(self, plugin_name: str, manifest_id: str) -> Path:
        return self.plugin_dir(plugin_name) / manifest_file_name(manifest_id)

    async def ensure_directory(self, plugin_name: str) -> Path:
        path = self.plugin_dir(plugin_name)
        try:
            await asyncio.to_thread(path.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise ManifestWriteError(str(path), f"{type(e).__name__}: {e}") from e
        return path

    async def write(
        self, plugin_name: str, manifest_id: str, final_manifest: FinalManifest
    ) -> Path:
        path = self.manifest_path(plugin_name, manifest_id)
        payload = json.dumps(final_manifest.to_dict(), indent=2, default=str) + "\n"
        try:
            await asyncio.to_thread(_atomic_write_text, path, payload)
        except OSError as e:
            raise ManifestWriteError(str(path), f"{type(e).__name__}: {e}") from e
        _LOGGER.verbose(f"wrote node manifest: {path}")
        return path
