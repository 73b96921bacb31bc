"""Configuration for a reconciliation run."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path

from pairsync.chain.errors import ChainConfigError

from .snapshot import DEFAULT_MISSING_SNAPSHOT, DEFAULT_SOURCE_SNAPSHOT

# Terraswap and Astroport factories on Terra Classic mainnet.
DEFAULT_SOURCE_REGISTRY = "terra1ulgw0td86nvs4wtpsc80thv6xelk76ut7a7apj"
DEFAULT_DESTINATION_REGISTRY = "terra1fnywlw4edny3vw44x04xd67uzkdqluymgreu7g"
DEFAULT_PAGE_SIZE = 30

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _env_text(name: str, default: str) -> str:
    value = os.environ.get(name, "").strip()
    return value or default


def _env_page_size() -> int:
    raw = os.environ.get("PAIRSYNC_PAGE_SIZE", "").strip()
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        page_size = int(raw)
    except ValueError as exc:
        raise ChainConfigError.invalid_setting("PAIRSYNC_PAGE_SIZE", raw) from exc
    if page_size < 1:
        raise ChainConfigError.invalid_setting("PAIRSYNC_PAGE_SIZE", raw)
    return page_size


def _env_flag(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ChainConfigError.invalid_setting(name, raw)


@dataclasses.dataclass(frozen=True, slots=True)
class ReconcileConfig:
    """Settings for one enumerate-probe-reconcile run.

    Attributes
    ----------
    source_registry
        Factory whose pairs are enumerated.
    destination_registry
        Factory probed for, and optionally given, the missing pairs.
    page_size
        ``limit`` sent with each ``pairs`` query.
    dry_run
        Report missing pairs without creating them.
    check_reversed
        Probe both asset orderings before declaring a pair missing.
    sender
        Account submitting ``create_pair`` when not in dry-run mode.
    output_dir
        Directory receiving the snapshot artefacts.
    source_snapshot, missing_snapshot
        Artefact file names.

    """

    source_registry: str = DEFAULT_SOURCE_REGISTRY
    destination_registry: str = DEFAULT_DESTINATION_REGISTRY
    page_size: int = DEFAULT_PAGE_SIZE
    dry_run: bool = True
    check_reversed: bool = False
    sender: str | None = None
    output_dir: Path = Path()
    source_snapshot: str = DEFAULT_SOURCE_SNAPSHOT
    missing_snapshot: str = DEFAULT_MISSING_SNAPSHOT

    @classmethod
    def from_env(cls) -> ReconcileConfig:
        """Build configuration from ``PAIRSYNC_*`` environment variables.

        Reads ``PAIRSYNC_SOURCE_REGISTRY``, ``PAIRSYNC_DESTINATION_REGISTRY``,
        ``PAIRSYNC_PAGE_SIZE``, ``PAIRSYNC_DRY_RUN``,
        ``PAIRSYNC_CHECK_REVERSED``, ``PAIRSYNC_SENDER`` and
        ``PAIRSYNC_OUTPUT_DIR``. Unset variables keep their defaults.

        Raises
        ------
        ChainConfigError
            If a numeric or boolean variable cannot be parsed.

        """
        sender = os.environ.get("PAIRSYNC_SENDER", "").strip() or None
        return cls(
            source_registry=_env_text(
                "PAIRSYNC_SOURCE_REGISTRY", DEFAULT_SOURCE_REGISTRY
            ),
            destination_registry=_env_text(
                "PAIRSYNC_DESTINATION_REGISTRY", DEFAULT_DESTINATION_REGISTRY
            ),
            page_size=_env_page_size(),
            dry_run=_env_flag("PAIRSYNC_DRY_RUN", default=True),
            check_reversed=_env_flag("PAIRSYNC_CHECK_REVERSED", default=False),
            sender=sender,
            output_dir=Path(_env_text("PAIRSYNC_OUTPUT_DIR", ".")),
        )
