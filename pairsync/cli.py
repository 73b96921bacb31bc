"""Find pairs the destination registry lacks and optionally create them.

Chain access is configured through the environment:

- ``PAIRSYNC_LCD_URL``: LCD gateway base URL (required)
- ``PAIRSYNC_CHAIN_ID``: Chain identifier reported in logs
- ``PAIRSYNC_TIMEOUT_S``: HTTP timeout in seconds (default ``20``)
- ``PAIRSYNC_SENDER``: Account submitting ``create_pair`` with ``--execute``
- ``PAIRSYNC_SIGNER``: ``module:factory`` returning a transaction signer
- ``PAIRSYNC_LOG_LEVEL``: Log level (default ``INFO``)

Registry addresses, page size and output location come from
``PAIRSYNC_*`` variables as well and can be overridden by options.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import os
import sys
from pathlib import Path

from pairsync.chain import (
    ChainConfigError,
    ContractCallError,
    LcdConfig,
    LcdContractClient,
    create_signer,
)
from pairsync.logging import configure_logging, get_logger, log_info, log_warning
from pairsync.registry import (
    Outcome,
    ReconcileConfig,
    ReconciliationReport,
    RegistryError,
    SnapshotWriter,
    run_pipeline,
)

logger = get_logger(__name__)


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"expected a positive integer, got {raw!r}"
        raise argparse.ArgumentTypeError(msg) from exc
    if value < 1:
        msg = f"expected a positive integer, got {raw!r}"
        raise argparse.ArgumentTypeError(msg)
    return value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pairsync",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--source", help="Source registry (factory) address")
    parser.add_argument("--destination", help="Destination registry address")
    parser.add_argument(
        "--page-size", type=_positive_int, help="Pairs requested per page"
    )
    parser.add_argument(
        "--output-dir", type=Path, help="Directory for the JSON snapshots"
    )
    parser.add_argument("--source-snapshot", help="File name of the source snapshot")
    parser.add_argument(
        "--missing-snapshot", help="File name of the missing-pairs snapshot"
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Create missing pairs instead of only reporting them",
    )
    parser.add_argument(
        "--check-reversed",
        action="store_true",
        help="Also probe each pair with its assets swapped",
    )
    parser.add_argument("--log-level", help="Override PAIRSYNC_LOG_LEVEL")
    return parser


def _apply_overrides(
    config: ReconcileConfig, args: argparse.Namespace
) -> ReconcileConfig:
    overrides: dict[str, object] = {
        field: value
        for field, value in (
            ("source_registry", args.source),
            ("destination_registry", args.destination),
            ("page_size", args.page_size),
            ("output_dir", args.output_dir),
            ("source_snapshot", args.source_snapshot),
            ("missing_snapshot", args.missing_snapshot),
        )
        if value is not None
    }
    if args.execute:
        overrides["dry_run"] = False
    if args.check_reversed:
        overrides["check_reversed"] = True
    return dataclasses.replace(config, **overrides)


def _setup_logging(cli_level: str | None) -> None:
    raw_level = cli_level or os.environ.get("PAIRSYNC_LOG_LEVEL", "INFO")
    normalized, invalid = configure_logging(raw_level)
    if invalid:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            raw_level,
            normalized,
        )


def _print_summary(report: ReconciliationReport) -> None:
    mode = "dry run" if report.dry_run else "execute"
    print(
        f"{len(report.enumerated)} pairs in {report.source_registry}, "
        f"checked against {report.destination_registry} ({mode})"
    )
    for outcome, count in report.counts().items():
        print(f"  {outcome}: {count}")
    if report.snapshots is not None:
        print(f"snapshots: {report.snapshots.source} {report.snapshots.missing}")
    if report.rejected:
        print(f"  lookup-rejected: {len(report.rejected)}")
    print(f"missing pairs: {report.missing_count}")


async def _run(config: ReconcileConfig, lcd_config: LcdConfig) -> ReconciliationReport:
    signer = None
    if not config.dry_run:
        signer = create_signer()
        if signer is None:
            raise ChainConfigError.missing_signer()
    client = LcdContractClient(lcd_config, signer=signer)
    writer = SnapshotWriter(
        config.output_dir,
        source_name=config.source_snapshot,
        missing_name=config.missing_snapshot,
    )
    try:
        return await run_pipeline(client, config, snapshot_writer=writer)
    finally:
        await client.aclose()


def main(argv: list[str] | None = None) -> int:
    """Run one reconciliation and print a summary.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on configuration, enumeration,
        transport or snapshot write failure.

    """
    args = _build_parser().parse_args(argv)
    _setup_logging(args.log_level)

    try:
        lcd_config = LcdConfig.from_env()
        config = _apply_overrides(ReconcileConfig.from_env(), args)
        log_info(
            logger,
            "chain_id=%s lcd=%s dry_run=%s",
            lcd_config.chain_id,
            lcd_config.lcd_url,
            config.dry_run,
        )
        report = asyncio.run(_run(config, lcd_config))
    except (ChainConfigError, ContractCallError, RegistryError, OSError) as exc:
        print(f"pairsync failed: {exc}", file=sys.stderr)
        return 1

    _print_summary(report)
    failed = report.counts()[Outcome.CREATION_FAILED]
    if failed:
        print(f"{failed} pair(s) failed to create", file=sys.stderr)
    for item in report.rejected:
        print(
            f"lookup rejected for {item.descriptor.label}: {item.error}",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
