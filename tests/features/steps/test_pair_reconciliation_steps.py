"""Behavioural coverage for enumerate-probe-reconcile runs."""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from pairsync.chain import ApplicationOtherError, TransportError
from pairsync.registry import (
    EnumerationError,
    Outcome,
    ReconcileConfig,
    SnapshotWriter,
    run_pipeline,
)
from tests.helpers.fake_chain import (
    DESTINATION,
    SENDER,
    SOURCE,
    FakeContractClient,
    descriptor,
    token,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pairsync.registry import PairDescriptor, ReconciliationReport

FEATURE = "../pair_reconciliation.feature"


class ReconciliationContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    client: FakeContractClient
    output_dir: Path
    report: ReconciliationReport
    error: Exception


def run_async[T](coro: typ.Coroutine[typ.Any, typ.Any, T]) -> T:
    """Run async coroutines in sync BDD step functions."""
    return asyncio.run(coro)


def _parse_pairs(raw: str) -> list[PairDescriptor]:
    """Turn ``"a/b,c/d"`` into token/token descriptors."""
    pairs = []
    for item in filter(None, (part.strip() for part in raw.split(","))):
        first, second = item.split("/")
        pairs.append(descriptor(token(first), token(second)))
    return pairs


@scenario(FEATURE, "A dry run reports the pairs the destination lacks")
def test_dry_run_reports_missing_pairs() -> None:
    """Wrap the pytest-bdd scenario."""


@scenario(FEATURE, "Executing creates missing pairs and a rerun changes nothing")
def test_execute_then_rerun() -> None:
    """Creation is idempotent across runs."""


@scenario(FEATURE, "A rejected creation does not stop the batch")
def test_rejected_creation_is_isolated() -> None:
    """Per-pair failures are recorded, not raised."""


@scenario(FEATURE, "A failing page aborts the run")
def test_failing_page_aborts() -> None:
    """Incomplete enumeration never reaches the prober."""


@pytest.fixture
def reconciliation_context(tmp_path: Path) -> ReconciliationContext:
    """Provide an empty fake chain and an output directory."""
    return {"client": FakeContractClient(), "output_dir": tmp_path}


@given(parsers.parse('the source registry lists the pairs "{pairs}"'))
def given_source_pairs(
    reconciliation_context: ReconciliationContext, pairs: str
) -> None:
    """Seed the source registry."""
    reconciliation_context["client"].registries[SOURCE] = _parse_pairs(pairs)


@given(parsers.parse('the destination registry lists the pairs "{pairs}"'))
def given_destination_pairs(
    reconciliation_context: ReconciliationContext, pairs: str
) -> None:
    """Seed the destination registry."""
    reconciliation_context["client"].registries[DESTINATION] = _parse_pairs(pairs)


@given("the destination registry is empty")
def given_empty_destination(reconciliation_context: ReconciliationContext) -> None:
    """Start with a destination registry holding no pairs."""
    reconciliation_context["client"].registries[DESTINATION] = []


@given(parsers.parse('the destination rejects creating "{pair}"'))
def given_rejected_creation(
    reconciliation_context: ReconciliationContext, pair: str
) -> None:
    """Make create_pair fail for one pair."""
    (rejected,) = _parse_pairs(pair)
    reconciliation_context["client"].create_failures[rejected.asset_infos] = (
        ApplicationOtherError(5, {}, contract_error="Pair was already registered")
    )


@given(parsers.parse("the source registry fails on page {page:d}"))
def given_page_failure(
    reconciliation_context: ReconciliationContext, page: int
) -> None:
    """Make one enumeration page fail with a transport error."""
    reconciliation_context["client"].page_failures[page] = TransportError(
        "LCD HTTP 503", status_code=503
    )


@when(
    parsers.parse(
        "the reconciliation runs in {mode} mode with page size {page_size:d}"
    )
)
def when_reconciliation_runs(
    reconciliation_context: ReconciliationContext, mode: str, page_size: int
) -> None:
    """Run the full pipeline against the fake chain."""
    dry_run = mode == "dry-run"
    config = ReconcileConfig(
        source_registry=SOURCE,
        destination_registry=DESTINATION,
        page_size=page_size,
        dry_run=dry_run,
        sender=None if dry_run else SENDER,
    )
    writer = SnapshotWriter(reconciliation_context["output_dir"])
    try:
        reconciliation_context["report"] = run_async(
            run_pipeline(
                reconciliation_context["client"], config, snapshot_writer=writer
            )
        )
    except EnumerationError as exc:
        reconciliation_context["error"] = exc


@then(parsers.parse('the missing pairs are "{pairs}"'))
def then_missing_pairs(
    reconciliation_context: ReconciliationContext, pairs: str
) -> None:
    """Compare the reported missing pairs with the expectation."""
    expected = _parse_pairs(pairs)
    assert list(reconciliation_context["report"].missing) == expected


@then("no pairs are missing")
def then_nothing_missing(reconciliation_context: ReconciliationContext) -> None:
    """Every source pair is present in the destination."""
    report = reconciliation_context["report"]
    assert report.missing == ()
    assert report.counts()[Outcome.ALREADY_EXISTS] == len(report.enumerated)


@then("no transactions were submitted")
def then_no_transactions(reconciliation_context: ReconciliationContext) -> None:
    """Dry runs never execute."""
    assert reconciliation_context["client"].executions == []


@then(parsers.parse("{count:d} transactions were submitted in total"))
def then_transaction_total(
    reconciliation_context: ReconciliationContext, count: int
) -> None:
    """Count every create_pair execution across runs."""
    assert len(reconciliation_context["client"].executions) == count


@then(parsers.parse('the missing snapshot lists "{pairs}"'))
def then_missing_snapshot(
    reconciliation_context: ReconciliationContext, pairs: str
) -> None:
    """The missing-pairs artefact mirrors the report."""
    snapshots = reconciliation_context["report"].snapshots
    assert snapshots is not None
    decoded = msgspec.json.decode(snapshots.missing.read_bytes())
    assert decoded == [pair.to_wire() for pair in _parse_pairs(pairs)]


@then(parsers.parse("the report counts {count:d} created pairs"))
def then_created_count(
    reconciliation_context: ReconciliationContext, count: int
) -> None:
    """Check the number of successful creations."""
    assert reconciliation_context["report"].counts()[Outcome.CREATED] == count


@then(parsers.parse("the report counts {count:d} failed creations"))
def then_failed_count(
    reconciliation_context: ReconciliationContext, count: int
) -> None:
    """Check the number of failed creations."""
    counts = reconciliation_context["report"].counts()
    assert counts[Outcome.CREATION_FAILED] == count


@then("the run fails with an enumeration error")
def then_enumeration_error(reconciliation_context: ReconciliationContext) -> None:
    """Enumeration failures surface as EnumerationError."""
    error = reconciliation_context.get("error")
    assert isinstance(error, EnumerationError)
    assert isinstance(error.__cause__, TransportError)
    assert "report" not in reconciliation_context


@then("no existence probes were issued")
def then_no_probes(reconciliation_context: ReconciliationContext) -> None:
    """The destination is never queried after a failed enumeration."""
    assert reconciliation_context["client"].lookup_queries == []
    assert list(reconciliation_context["output_dir"].iterdir()) == []
