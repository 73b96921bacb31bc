"""Enumerate, probe and reconcile in one run.

Stages hand their results to the next stage as values; nothing is kept
between runs, so re-running after a crash re-derives everything from the
live registries and reclassifies pairs created earlier as existing.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import typing as typ

from .enumerator import enumerate_pairs
from .observability import ReconcileEventLogger
from .prober import ExistenceProber
from .reconciler import Outcome, Reconciler

if typ.TYPE_CHECKING:
    from pairsync.chain.client import ContractClient

    from .config import ReconcileConfig
    from .models import PairDescriptor
    from .prober import RejectedProbe
    from .reconciler import PairOutcome
    from .snapshot import SnapshotPaths, SnapshotWriter


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


@dataclasses.dataclass(frozen=True, slots=True)
class ReconciliationReport:
    """Everything a run learnt and did."""

    source_registry: str
    destination_registry: str
    dry_run: bool
    started_at: dt.datetime
    finished_at: dt.datetime
    enumerated: tuple[PairDescriptor, ...]
    existing: tuple[PairDescriptor, ...]
    missing: tuple[PairDescriptor, ...]
    outcomes: tuple[PairOutcome, ...]
    rejected: tuple[RejectedProbe, ...] = ()
    snapshots: SnapshotPaths | None = None

    @property
    def missing_count(self) -> int:
        """Number of pairs the prober classified as missing."""
        return len(self.missing)

    def counts(self) -> dict[Outcome, int]:
        """Return per-outcome totals; existing pairs count as already-exists."""
        totals = dict.fromkeys(Outcome, 0)
        totals[Outcome.ALREADY_EXISTS] = len(self.existing)
        for item in self.outcomes:
            totals[item.outcome] += 1
        return totals


async def run_pipeline(
    client: ContractClient,
    config: ReconcileConfig,
    *,
    snapshot_writer: SnapshotWriter | None = None,
    event_logger: ReconcileEventLogger | None = None,
) -> ReconciliationReport:
    """Run enumeration, probing and reconciliation for ``config``.

    Raises
    ------
    EnumerationError
        If the source registry could not be listed completely.
    TransportError
        If a probe got no answer from the destination contract. Contract
        rejections of single lookups are reported in ``rejected`` instead.
    ChainConfigError
        If creation was requested without a sender.

    """
    events = event_logger or ReconcileEventLogger()
    started_at = _utcnow()
    events.log_run_started(
        source_registry=config.source_registry,
        destination_registry=config.destination_registry,
        dry_run=config.dry_run,
    )
    try:
        report = await _run_stages(
            client,
            config,
            started_at=started_at,
            snapshot_writer=snapshot_writer,
            events=events,
        )
    except Exception as exc:
        events.log_run_failed(exc, _utcnow() - started_at)
        raise

    events.log_run_completed(
        enumerated=len(report.enumerated),
        existing=len(report.existing),
        missing=report.missing_count,
        rejected=len(report.rejected),
        duration=report.finished_at - started_at,
    )
    return report


async def _run_stages(
    client: ContractClient,
    config: ReconcileConfig,
    *,
    started_at: dt.datetime,
    snapshot_writer: SnapshotWriter | None,
    events: ReconcileEventLogger,
) -> ReconciliationReport:
    prober = ExistenceProber(
        client,
        config.destination_registry,
        check_reversed=config.check_reversed,
        event_logger=events,
    )
    reconciler = Reconciler(
        client,
        config.destination_registry,
        dry_run=config.dry_run,
        sender=config.sender,
        prober=prober,
        event_logger=events,
    )

    enumerated = await enumerate_pairs(
        client, config.source_registry, config.page_size, event_logger=events
    )
    partition = await prober.probe_all(enumerated)
    outcomes = await reconciler.reconcile(partition.missing)

    snapshots = None
    if snapshot_writer is not None:
        snapshots = await snapshot_writer.write(enumerated, partition.missing)

    return ReconciliationReport(
        source_registry=config.source_registry,
        destination_registry=config.destination_registry,
        dry_run=config.dry_run,
        started_at=started_at,
        finished_at=_utcnow(),
        enumerated=tuple(enumerated),
        existing=partition.existing,
        missing=partition.missing,
        outcomes=tuple(outcomes),
        rejected=partition.rejected,
        snapshots=snapshots,
    )
