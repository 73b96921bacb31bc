"""Advisory JSON snapshots of a reconciliation run.

Two artefacts are written into one directory at the end of a run::

    {output_dir}/source_pairs.json    every pair listed by the source registry
    {output_dir}/missing_pairs.json   pairs absent from the destination

Each is a JSON array of descriptors in their original wire form. Files are
replaced atomically; nothing in pairsync reads them back.
"""

from __future__ import annotations

import asyncio
import dataclasses
import os
import tempfile
import typing as typ
from pathlib import Path

import msgspec

from .observability import ReconcileEventLogger

if typ.TYPE_CHECKING:
    from .models import PairDescriptor

DEFAULT_SOURCE_SNAPSHOT = "source_pairs.json"
DEFAULT_MISSING_SNAPSHOT = "missing_pairs.json"


def encode_descriptors(descriptors: typ.Iterable[PairDescriptor]) -> bytes:
    """Encode descriptors as an indented JSON array."""
    encoded = msgspec.json.encode([descriptor.to_wire() for descriptor in descriptors])
    return msgspec.json.format(encoded, indent=2) + b"\n"


def write_snapshot(path: Path, descriptors: typ.Iterable[PairDescriptor]) -> Path:
    """Atomically replace ``path`` with a JSON snapshot of ``descriptors``."""
    payload = encode_descriptors(descriptors)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path


@dataclasses.dataclass(frozen=True, slots=True)
class SnapshotPaths:
    """Locations of the artefacts written for a run."""

    source: Path
    missing: Path


class SnapshotWriter:
    """Write source and missing-pair snapshots for a run.

    Parameters
    ----------
    output_dir
        Directory receiving both artefacts; created when absent.
    source_name, missing_name
        File names of the two artefacts.

    """

    def __init__(
        self,
        output_dir: Path,
        *,
        source_name: str = DEFAULT_SOURCE_SNAPSHOT,
        missing_name: str = DEFAULT_MISSING_SNAPSHOT,
        event_logger: ReconcileEventLogger | None = None,
    ) -> None:
        """Initialise the writer with a target directory."""
        self._output_dir = output_dir
        self._source_name = source_name
        self._missing_name = missing_name
        self._events = event_logger or ReconcileEventLogger()

    async def write(
        self,
        source: typ.Sequence[PairDescriptor],
        missing: typ.Sequence[PairDescriptor],
    ) -> SnapshotPaths:
        """Write both snapshots off the event loop and return their paths."""
        paths = SnapshotPaths(
            source=self._output_dir / self._source_name,
            missing=self._output_dir / self._missing_name,
        )
        await asyncio.to_thread(write_snapshot, paths.source, source)
        self._events.log_snapshot_written(paths.source, len(source))
        await asyncio.to_thread(write_snapshot, paths.missing, missing)
        self._events.log_snapshot_written(paths.missing, len(missing))
        return paths
