from __future__ import annotations

import asyncio
import hashlib
import json
from pathlib import Path

import pytest

from nodemanifest.core.errors import ManifestWriteError
from nodemanifest.manifests.model import FinalManifest, PageRef
from nodemanifest.manifests.writer import FileManifestWriter, manifest_file_name


def test_writes_manifest_under_plugin_directory(tmp_path: Path) -> None:
    writer = FileManifestWriter.for_program_directory(tmp_path)
    final = FinalManifest(page=PageRef(path="/n"), node={"id": "n"})

    async def _run() -> Path:
        await writer.ensure_directory("p")
        return await writer.write("p", "m", final)

    path = asyncio.run(_run())

    assert path == tmp_path / ".cache" / "node-manifests" / "p" / "m.json"
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "page": {"path": "/n"},
        "node": {"id": "n"},
    }


def test_full_node_object_is_persisted(tmp_path: Path) -> None:
    writer = FileManifestWriter(tmp_path / "cache")
    node = {"id": "n", "title": "Hello", "internal": {"type": "BlogPost"}}

    async def _run() -> Path:
        await writer.ensure_directory("p")
        return await writer.write("p", "m", FinalManifest(page=PageRef(path="/n"), node=node))

    body = json.loads(asyncio.run(_run()).read_text(encoding="utf-8"))

    assert body["node"] == node


def test_missing_page_is_written_as_null_path(tmp_path: Path) -> None:
    writer = FileManifestWriter(tmp_path)

    async def _run() -> Path:
        await writer.ensure_directory("p")
        return await writer.write("p", "m", FinalManifest(page=None, node={"id": "n"}))

    body = json.loads(asyncio.run(_run()).read_text(encoding="utf-8"))

    assert body == {"page": {"path": None}, "node": {"id": "n"}}


def test_ensure_directory_is_idempotent(tmp_path: Path) -> None:
    writer = FileManifestWriter(tmp_path)

    async def _run() -> None:
        await writer.ensure_directory("p")
        await writer.ensure_directory("p")

    asyncio.run(_run())

    assert (tmp_path / "node-manifests" / "p").is_dir()


def test_same_manifest_id_overwrites_last_write_wins(tmp_path: Path) -> None:
    writer = FileManifestWriter(tmp_path)

    async def _run() -> Path:
        await writer.ensure_directory("p")
        await writer.write("p", "m", FinalManifest(page=PageRef(path="/old"), node={"id": "n"}))
        return await writer.write(
            "p", "m", FinalManifest(page=PageRef(path="/new"), node={"id": "n"})
        )

    path = asyncio.run(_run())

    assert json.loads(path.read_text(encoding="utf-8"))["page"]["path"] == "/new"
    assert sorted(p.name for p in path.parent.iterdir()) == ["m.json"]


def test_manifest_ids_are_scoped_per_plugin(tmp_path: Path) -> None:
    writer = FileManifestWriter(tmp_path)

    async def _run() -> tuple[Path, Path]:
        await writer.ensure_directory("a")
        await writer.ensure_directory("b")
        first = await writer.write("a", "1", FinalManifest(page=PageRef(path="/a"), node={"id": "1"}))
        second = await writer.write("b", "1", FinalManifest(page=PageRef(path="/b"), node={"id": "1"}))
        return first, second

    first, second = asyncio.run(_run())

    assert first != second
    assert json.loads(first.read_text(encoding="utf-8"))["page"]["path"] == "/a"
    assert json.loads(second.read_text(encoding="utf-8"))["page"]["path"] == "/b"


def test_overlong_manifest_id_is_hashed() -> None:
    manifest_id = "x" * 300

    name = manifest_file_name(manifest_id)

    assert name == hashlib.sha256(manifest_id.encode("utf-8")).hexdigest() + ".json"
    assert manifest_file_name("short-id") == "short-id.json"


def test_write_without_directory_raises_manifest_write_error(tmp_path: Path) -> None:
    writer = FileManifestWriter(tmp_path)

    with pytest.raises(ManifestWriteError) as exc_info:
        asyncio.run(writer.write("p", "m", FinalManifest(page=None, node={"id": "n"})))

    assert "m.json" in exc_info.value.path
    assert not (tmp_path / "node-manifests" / "p").exists()


def test_ensure_directory_failure_raises_manifest_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "node-manifests"
    blocker.write_text("not a directory", encoding="utf-8")
    writer = FileManifestWriter(tmp_path)

    with pytest.raises(ManifestWriteError):
        asyncio.run(writer.ensure_directory("p"))


@pytest.mark.parametrize(
    ("manifest_id", "file_name"),
    [
        ("posts/1", "posts%2F1.json"),
        ("../../../escaped", "..%2F..%2F..%2Fescaped.json"),
        ("a\\b", "a%5Cb.json"),
        ("50%", "50%25.json"),
        ("..", "...json"),
    ],
)
def test_manifest_id_stays_inside_plugin_directory(
    tmp_path: Path, manifest_id: str, file_name: str
) -> None:
    writer = FileManifestWriter(tmp_path / "cache")

    async def _run() -> Path:
        await writer.ensure_directory("p")
        return await writer.write("p", manifest_id, FinalManifest(page=None, node={"id": "n"}))

    path = asyncio.run(_run())

    assert path == tmp_path / "cache" / "node-manifests" / "p" / file_name
    assert path.is_file()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["cache"]


def test_encoded_manifest_ids_do_not_collide() -> None:
    assert manifest_file_name("a/b") != manifest_file_name("a%2Fb")


@pytest.mark.parametrize("plugin_name", ["", ".", "..", "../p", "a/b", "a\\b"])
def test_plugin_name_must_be_a_single_path_segment(tmp_path: Path, plugin_name: str) -> None:
    writer = FileManifestWriter(tmp_path)

    with pytest.raises(ManifestWriteError):
        asyncio.run(writer.ensure_directory(plugin_name))

    assert not (tmp_path / "node-manifests").exists()


def test_default_writer_honours_configured_cache_dir(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("NODEMANIFEST_NODE_MANIFESTS_CACHE_DIR", "build-cache")

    writer = FileManifestWriter.for_program_directory(tmp_path)

    assert writer.root == tmp_path / "build-cache" / "node-manifests"
