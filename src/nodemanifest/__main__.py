"""Command-line entry point.

    python -m nodemanifest process STATE_FILE [--directory DIR] [--verbosity LEVEL]

STATE_FILE is a YAML snapshot of the content store:

    nodes:
      - id: "1"
        title: Hello
    pages:
      - path: /blog/hello
        owner_node_id: "1"
    queries:
      "1": ["/blog/hello"]
    manifests:
      - plugin_name: source-cms
        manifest_id: "1-2024-01-01"
        node: {id: "1"}

The manifests are queued and written out as one batch.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

import yaml

from nodemanifest.core.config import ConfigResolver
from nodemanifest.core.diagnostics import install_jsonl_sink
from nodemanifest.core.errors import ConfigError, NodeManifestError
from nodemanifest.core.logging import apply_logging_policy, get_logger, set_colors
from nodemanifest.manifests.api import create_node_manifest
from nodemanifest.manifests.processor import process_node_manifests
from nodemanifest.manifests.writer import FileManifestWriter
from nodemanifest.store.content_store import ContentStore
from nodemanifest.store.model import Page

_LOGGER = get_logger(__name__)


def _as_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"State key '{key}' must be a list")
    return value


def load_state(path: Path, store: ContentStore) -> int:
    """Load a YAML store snapshot into `store`.

    Returns:
        Number of manifests queued

    Raises:
        ConfigError: If the file is missing or malformed
    """
    if not path.exists():
        raise ConfigError(f"State file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse state file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"State file {path} must contain a mapping")

    try:
        for node in _as_list(data, "nodes"):
            store.create_node(node)
        for page in _as_list(data, "pages"):
            store.pages.create_page(Page.from_dict(page))
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid node or page in {path}: {e}") from e

    queries = data.get("queries") or {}
    if not isinstance(queries, dict):
        raise ConfigError("State key 'queries' must map node ids to lists of page paths")
    for node_id, query_ids in queries.items():
        if query_ids is None:
            continue
        if not isinstance(query_ids, list):
            raise ConfigError(f"Queries of node '{node_id}' must be a list of page paths")
        for query_id in query_ids:
            store.pages.track_query(str(node_id), str(query_id))

    manifests = _as_list(data, "manifests")
    for entry in manifests:
        if not isinstance(entry, dict):
            raise ConfigError("Each manifest entry must be a mapping")
        create_node_manifest(
            store,
            plugin_name=entry.get("plugin_name"),
            manifest_id=entry.get("manifest_id"),
            node=entry.get("node"),
        )
    return len(manifests)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nodemanifest",
        description="Write node -> page manifests for preview services.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    process = sub.add_parser("process", help="Queue manifests from a state file and write them")
    process.add_argument("state_file", type=Path, help="YAML store snapshot")
    process.add_argument(
        "--directory",
        help="Program directory; manifests go to <directory>/.cache/node-manifests",
    )
    process.add_argument(
        "--verbosity",
        choices=["quiet", "normal", "verbose", "debug"],
        help="Logging level (overrides config and environment)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    cli_args: dict[str, Any] = {}
    if args.directory:
        cli_args["program"] = {"directory": args.directory}
    if args.verbosity:
        cli_args["logging"] = {"level": args.verbosity}

    try:
        resolver = ConfigResolver(cli_args=cli_args)
        apply_logging_policy(resolver.resolve_logging_policy())
        set_colors(resolver.resolve_bool("logging.color", default=True))
        install_jsonl_sink(resolver=resolver)

        store = ContentStore(program_directory=resolver.resolve_program_directory())
        queued = load_state(args.state_file, store)
        _LOGGER.verbose(f"queued {queued} node manifests from {args.state_file}")

        writer = FileManifestWriter(resolver.resolve_cache_root())
        asyncio.run(process_node_manifests(store, writer=writer))
    except NodeManifestError as e:
        _LOGGER.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
