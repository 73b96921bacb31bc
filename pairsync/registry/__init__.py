"""Pair registry reconciliation.

Compares the pairs listed by a source factory contract with a destination
factory and reports, or creates, the ones the destination lacks. It
provides:

- Cursor-paginated enumeration of the source registry
- Existence probes that tell "pair not found" apart from real failures
- A dry-run-by-default reconciler with per-pair failure isolation
- Atomic JSON snapshots of the enumerated and missing pairs

Usage
-----
Run the whole pipeline against an LCD gateway::

    from pairsync.chain import LcdConfig, LcdContractClient
    from pairsync.registry import ReconcileConfig, SnapshotWriter, run_pipeline

    client = LcdContractClient(LcdConfig(lcd_url="https://lcd.example"))
    report = await run_pipeline(
        client,
        ReconcileConfig(),
        snapshot_writer=SnapshotWriter(Path("out")),
    )
    print(report.missing_count)

"""

from pairsync.registry.config import ReconcileConfig
from pairsync.registry.enumerator import (
    Page,
    PageFetcher,
    RegistryPageFetcher,
    collect_pages,
    enumerate_pairs,
    page_from_items,
)
from pairsync.registry.errors import (
    EnumerationError,
    InvalidPageSizeError,
    RegistryError,
)
from pairsync.registry.models import (
    AssetInfo,
    AssetInfoPair,
    NativeToken,
    PairDescriptor,
    PairKind,
    PairType,
    Token,
)
from pairsync.registry.pipeline import ReconciliationReport, run_pipeline
from pairsync.registry.prober import (
    Classification,
    ExistenceProber,
    ProbePartition,
    ProbeResult,
    ProbeStatus,
    RejectedProbe,
)
from pairsync.registry.reconciler import Outcome, PairOutcome, Reconciler, reconcile
from pairsync.registry.snapshot import SnapshotPaths, SnapshotWriter, write_snapshot

__all__ = [
    "AssetInfo",
    "AssetInfoPair",
    "Classification",
    "EnumerationError",
    "ExistenceProber",
    "InvalidPageSizeError",
    "NativeToken",
    "Outcome",
    "Page",
    "PageFetcher",
    "PairDescriptor",
    "PairKind",
    "PairOutcome",
    "PairType",
    "ProbePartition",
    "ProbeResult",
    "ProbeStatus",
    "ReconcileConfig",
    "Reconciler",
    "ReconciliationReport",
    "RegistryError",
    "RegistryPageFetcher",
    "RejectedProbe",
    "SnapshotPaths",
    "SnapshotWriter",
    "Token",
    "collect_pages",
    "enumerate_pairs",
    "page_from_items",
    "reconcile",
    "run_pipeline",
    "write_snapshot",
]
