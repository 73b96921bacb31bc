"""Unit tests for snapshot artefacts."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from pairsync.registry import SnapshotWriter, write_snapshot
from tests.helpers.fake_chain import descriptor, native, numbered_pairs, token

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_snapshot_overwrites_previous_content(tmp_path: Path) -> None:
    """Each write replaces the file and leaves no temporary files behind."""
    path = tmp_path / "pairs.json"
    write_snapshot(path, numbered_pairs(3))
    write_snapshot(path, numbered_pairs(1))

    decoded = msgspec.json.decode(path.read_bytes())

    assert decoded == [numbered_pairs(1)[0].to_wire()]
    assert [entry.name for entry in tmp_path.iterdir()] == ["pairs.json"]


def test_snapshot_preserves_passthrough_fields(tmp_path: Path) -> None:
    """Metadata the pipeline does not inspect reaches the artefact."""
    pair = descriptor(
        token("terra1a"),
        native("uluna"),
        liquidity_token="terra1lp",
        asset_decimals=[6, 6],
    )
    path = write_snapshot(tmp_path / "nested" / "pairs.json", [pair])

    (entry,) = msgspec.json.decode(path.read_bytes())

    assert entry["liquidity_token"] == "terra1lp"
    assert entry["asset_decimals"] == [6, 6]
    assert entry == pair.to_wire()


def test_snapshot_is_indented_json_array(tmp_path: Path) -> None:
    """Artefacts are human-readable JSON arrays."""
    path = write_snapshot(tmp_path / "empty.json", [])

    assert path.read_text(encoding="utf-8").strip() == "[]"

    path = write_snapshot(tmp_path / "one.json", numbered_pairs(1))
    assert path.read_text(encoding="utf-8").startswith("[\n  {")


@pytest.mark.asyncio
async def test_writer_uses_configured_names(tmp_path: Path) -> None:
    """SnapshotWriter writes both artefacts under the configured names."""
    pairs = numbered_pairs(4)
    writer = SnapshotWriter(
        tmp_path, source_name="all.json", missing_name="todo.json"
    )

    paths = await writer.write(pairs, pairs[1:2])

    assert paths.source == tmp_path / "all.json"
    assert paths.missing == tmp_path / "todo.json"
    assert len(msgspec.json.decode(paths.source.read_bytes())) == 4
    assert msgspec.json.decode(paths.missing.read_bytes()) == [pairs[1].to_wire()]
