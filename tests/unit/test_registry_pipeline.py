"""Unit tests for the enumerate-probe-reconcile pipeline."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from pairsync.chain.errors import (
    ApplicationOtherError,
    ChainConfigError,
    TransportError,
)
from pairsync.registry import (
    EnumerationError,
    Outcome,
    ReconcileConfig,
    SnapshotWriter,
    run_pipeline,
)
from pairsync.registry.models import STABLE
from tests.helpers.fake_chain import (
    DESTINATION,
    SENDER,
    SOURCE,
    FakeContractClient,
    descriptor,
    numbered_pairs,
    token,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

_X = token("terra1x")
_Y = token("terra1y")
_Z = token("terra1z")


def _config(**overrides: typ.Any) -> ReconcileConfig:  # noqa: ANN401
    values: dict[str, typ.Any] = {
        "source_registry": SOURCE,
        "destination_registry": DESTINATION,
        "page_size": 2,
    }
    values.update(overrides)
    return ReconcileConfig(**values)


@pytest.mark.asyncio
async def test_dry_run_reports_missing_pair_and_writes_snapshots(
    tmp_path: Path,
) -> None:
    """Registry A has XY and YZ, registry B has XY: only YZ is missing."""
    xy = descriptor(_X, _Y)
    yz = descriptor(_Y, _Z, pair_type=STABLE)
    client = FakeContractClient({SOURCE: [xy, yz], DESTINATION: [xy]})

    report = await run_pipeline(
        client, _config(), snapshot_writer=SnapshotWriter(tmp_path)
    )

    assert report.enumerated == (xy, yz)
    assert report.existing == (xy,)
    assert report.missing == (yz,)
    assert [(item.descriptor, item.outcome) for item in report.outcomes] == [
        (yz, Outcome.SKIPPED)
    ]
    assert report.counts() == {
        Outcome.ALREADY_EXISTS: 1,
        Outcome.CREATED: 0,
        Outcome.CREATION_FAILED: 0,
        Outcome.SKIPPED: 1,
    }
    assert client.executions == []

    assert report.snapshots is not None
    missing = msgspec.json.decode(report.snapshots.missing.read_bytes())
    source = msgspec.json.decode(report.snapshots.source.read_bytes())
    assert missing == [yz.to_wire()]
    assert source == [xy.to_wire(), yz.to_wire()]


@pytest.mark.asyncio
async def test_execute_mode_creates_missing_pairs() -> None:
    """With dry run off the missing pairs end up in the destination."""
    pairs = numbered_pairs(5)
    client = FakeContractClient({SOURCE: pairs, DESTINATION: pairs[:2]})

    report = await run_pipeline(client, _config(dry_run=False, sender=SENDER))

    assert report.counts()[Outcome.CREATED] == 3
    assert report.counts()[Outcome.ALREADY_EXISTS] == 2
    assert report.snapshots is None
    assert len(client.registries[DESTINATION]) == 5

    rerun = await run_pipeline(client, _config(dry_run=False, sender=SENDER))

    assert rerun.missing == ()
    assert rerun.counts()[Outcome.ALREADY_EXISTS] == 5
    assert len(client.executions) == 3


@pytest.mark.asyncio
async def test_enumeration_failure_aborts_before_probing(tmp_path: Path) -> None:
    """A failing page stops the run before any lookup or snapshot."""
    client = FakeContractClient({SOURCE: numbered_pairs(6), DESTINATION: []})
    client.page_failures[2] = TransportError("connection refused")

    with pytest.raises(EnumerationError):
        await run_pipeline(client, _config(), snapshot_writer=SnapshotWriter(tmp_path))

    assert client.lookup_queries == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_missing_sender_fails_before_any_query() -> None:
    """Execute mode without a sender is rejected up front."""
    client = FakeContractClient({SOURCE: numbered_pairs(2)})

    with pytest.raises(ChainConfigError):
        await run_pipeline(client, _config(dry_run=False))

    assert client.queries == []


@pytest.mark.asyncio
async def test_rejected_lookup_is_reported_and_not_snapshotted(
    tmp_path: Path,
) -> None:
    """A pair the destination refuses to look up is neither created nor missing."""
    xy = descriptor(_X, _Y)
    bad = descriptor(_Y, token("terra1bad"))
    yz = descriptor(_Y, _Z)
    client = FakeContractClient({SOURCE: [xy, bad, yz], DESTINATION: [xy]})
    client.lookup_failures[bad.asset_infos] = ApplicationOtherError(
        3, {}, contract_error="invalid asset"
    )

    report = await run_pipeline(
        client,
        _config(dry_run=False, sender=SENDER),
        snapshot_writer=SnapshotWriter(tmp_path),
    )

    assert [item.descriptor for item in report.rejected] == [bad]
    assert report.missing == (yz,)
    assert [(item.descriptor, item.outcome) for item in report.outcomes] == [
        (yz, Outcome.CREATED)
    ]
    assert report.snapshots is not None
    missing = msgspec.json.decode(report.snapshots.missing.read_bytes())
    assert missing == [yz.to_wire()]
