"""Drain pending node manifests and write them out.

One batch:
    1. take (and clear) every pending request from the store
    2. process all of them concurrently: node lookup -> page resolver ->
       mapping warnings -> writer
    3. log one summary line and notify the store once

A request enqueued while a batch runs is left for the next batch.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nodemanifest.core.diagnostics import emit_diag
from nodemanifest.core.errors import ManifestBatchError
from nodemanifest.core.logging import get_logger
from nodemanifest.manifests.mapping_warnings import warn_about_node_manifest_mapping_problems
from nodemanifest.manifests.model import FinalManifest, FoundPageBy, ResolvedPage
from nodemanifest.manifests.resolver import find_page_owned_by_node_id
from nodemanifest.manifests.writer import FileManifestWriter, ManifestWriter
from nodemanifest.store.content_store import ContentStore
from nodemanifest.store.model import ManifestRequest, StoreAction

_LOGGER = get_logger(__name__)

COMPONENT = "node_manifests"

FindPageFn = Callable[[ContentStore, str], ResolvedPage]
WarnFn = Callable[[ManifestRequest, str | None, FoundPageBy], Any]
ProcessNodeManifestFn = Callable[[ManifestRequest], Awaitable[Path | None]]


@dataclass
class BatchResult:
    total: int = 0
    written: list[Path] = field(default_factory=list)
    skipped: list[ManifestRequest] = field(default_factory=list)
    failures: list[tuple[ManifestRequest, Exception]] = field(default_factory=list)


def missing_node_message(request: ManifestRequest) -> str:
    return (
        f"Plugin {request.plugin_name} called unstable_createNodeManifest for a node "
        f"which doesn't exist with an id of {request.node.id}."
    )


def summary_message(count: int) -> str:
    return f"Wrote out {count} node page manifest files"


async def process_node_manifest(
    request: ManifestRequest,
    store: ContentStore,
    *,
    writer: ManifestWriter | None = None,
    find_page_fn: FindPageFn = find_page_owned_by_node_id,
    warn_fn: WarnFn = warn_about_node_manifest_mapping_problems,
) -> Path | None:
    """Process one request.

    Returns:
        Path of the written manifest, or None when the node no longer exists
    """
    node = store.get_node(request.node.id)
    if node is None:
        _LOGGER.warning(missing_node_message(request))
        return None

    resolved = find_page_fn(store, request.node.id)
    warn_fn(request, resolved.page_path, resolved.found_page_by)

    if writer is None:
        writer = FileManifestWriter.for_program_directory(store.program_directory)

    final_manifest = FinalManifest(page=resolved.page, node=node)
    await writer.ensure_directory(request.plugin_name)
    return await writer.write(request.plugin_name, request.manifest_id, final_manifest)


async def process_node_manifests(
    store: ContentStore,
    *,
    writer: ManifestWriter | None = None,
    process_node_manifest_fn: ProcessNodeManifestFn | None = None,
) -> BatchResult:
    """Process every pending node manifest as one batch.

    Raises:
        ManifestBatchError: After the batch settled, if any entry failed
    """
    # Resolve config before taking the batch, so a config error loses nothing.
    if writer is None and process_node_manifest_fn is None:
        writer = FileManifestWriter.for_program_directory(store.program_directory)

    pending = store.take_pending_manifests()
    if not pending:
        return BatchResult()

    async def _process_default(request: ManifestRequest) -> Path | None:
        return await process_node_manifest(request, store, writer=writer)

    process_fn = process_node_manifest_fn or _process_default

    _LOGGER.debug(f"processing {len(pending)} pending node manifests")

    outcomes = await asyncio.gather(
        *(process_fn(request) for request in pending),
        return_exceptions=True,
    )

    result = BatchResult(total=len(pending))
    for request, outcome in zip(pending, outcomes, strict=True):
        if isinstance(outcome, Exception):
            result.failures.append((request, outcome))
            _LOGGER.error(
                f"node manifest failed: plugin={request.plugin_name} "
                f"manifest_id={request.manifest_id} node_id={request.node.id} "
                f"error={type(outcome).__name__}: {outcome}"
            )
            emit_diag(
                "diag.node_manifests.entry_failed",
                component=COMPONENT,
                operation="process_node_manifest",
                data={
                    **request.to_dict(),
                    "error_type": type(outcome).__name__,
                    "error_message": str(outcome),
                },
                bus=store.bus,
            )
        elif isinstance(outcome, BaseException):
            raise outcome
        elif outcome is None:
            result.skipped.append(request)
        else:
            result.written.append(outcome)

    # Every entry taken counts, including skipped and failed ones.
    _LOGGER.info(summary_message(result.total))
    store.dispatch(
        StoreAction.NODE_MANIFESTS_PROCESSED,
        {
            "total": result.total,
            "written": len(result.written),
            "skipped": len(result.skipped),
            "failed": len(result.failures),
        },
    )

    if result.failures:
        raise ManifestBatchError(result.failures) from result.failures[0][1]

    return result
