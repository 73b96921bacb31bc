"""Structured lifecycle events for pair reconciliation runs.

Every event is a single pre-formatted femtologging line led by its event
type, for example::

    [pairsync.enumeration.page] registry=terra1... page=3 items=30 exhausted=False

"""

from __future__ import annotations

import enum
import typing as typ

from pairsync.chain.errors import (
    ApplicationNotFoundError,
    ApplicationOtherError,
    ChainConfigError,
    ResponseShapeError,
    SigningError,
    TransportError,
)
from pairsync.logging import get_logger, log_error, log_info, log_warning

from .errors import EnumerationError

if typ.TYPE_CHECKING:
    import datetime as dt
    from pathlib import Path

    from .models import PairDescriptor

logger = get_logger(__name__)


class ReconcileEventType(enum.StrEnum):
    """Structured log event types for reconciliation runs."""

    RUN_STARTED = "pairsync.run.started"
    RUN_COMPLETED = "pairsync.run.completed"
    RUN_FAILED = "pairsync.run.failed"
    PAGE_FETCHED = "pairsync.enumeration.page"
    DUPLICATE_SKIPPED = "pairsync.enumeration.duplicate"
    PROBE_MISSING = "pairsync.probe.missing"
    PROBE_REJECTED = "pairsync.probe.rejected"
    PAIR_SKIPPED = "pairsync.create.skipped"
    PAIR_CREATED = "pairsync.create.succeeded"
    PAIR_CREATION_FAILED = "pairsync.create.failed"
    PAIR_APPEARED = "pairsync.create.already_exists"
    SNAPSHOT_WRITTEN = "pairsync.snapshot.written"


class ErrorCategory(enum.StrEnum):
    """Categories used to route failures in alerts and reports."""

    TRANSIENT = "transient"
    NOT_FOUND = "not_found"
    CONTRACT_REJECTED = "contract_rejected"
    SIGNING = "signing"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


# Order matters: subclasses precede their bases.
_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (ResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (TransportError, ErrorCategory.TRANSIENT),
    (ApplicationNotFoundError, ErrorCategory.NOT_FOUND),
    (ApplicationOtherError, ErrorCategory.CONTRACT_REJECTED),
    (SigningError, ErrorCategory.SIGNING),
    (ChainConfigError, ErrorCategory.CONFIGURATION),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception, looking through :class:`EnumerationError`."""
    if isinstance(exc, EnumerationError) and exc.__cause__ is not None:
        return categorize_error(exc.__cause__)

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class ReconcileEventLogger:
    """Emit structured reconciliation events via femtologging."""

    def log_run_started(
        self,
        *,
        source_registry: str,
        destination_registry: str,
        dry_run: bool,
    ) -> None:
        """Log the start of a run."""
        log_info(
            logger,
            "[%s] source=%s destination=%s dry_run=%s",
            ReconcileEventType.RUN_STARTED,
            source_registry,
            destination_registry,
            dry_run,
        )

    def log_page_fetched(
        self,
        *,
        registry_address: str,
        page_number: int,
        items: int,
        exhausted: bool,
    ) -> None:
        """Log one fetched enumeration page."""
        log_info(
            logger,
            "[%s] registry=%s page=%d items=%d exhausted=%s",
            ReconcileEventType.PAGE_FETCHED,
            registry_address,
            page_number,
            items,
            exhausted,
        )

    def log_duplicate_skipped(
        self, *, registry_address: str, descriptor: PairDescriptor
    ) -> None:
        """Warn about a pair the registry listed twice."""
        log_warning(
            logger,
            "[%s] registry=%s pair=%s",
            ReconcileEventType.DUPLICATE_SKIPPED,
            registry_address,
            descriptor.label,
        )

    def log_probe_missing(
        self, *, registry_address: str, descriptor: PairDescriptor
    ) -> None:
        """Log a pair the destination registry does not know."""
        log_info(
            logger,
            "[%s] registry=%s pair=%s pair_type=%s",
            ReconcileEventType.PROBE_MISSING,
            registry_address,
            descriptor.label,
            descriptor.pair_type.tag,
        )

    def log_probe_rejected(
        self,
        *,
        registry_address: str,
        descriptor: PairDescriptor,
        error: BaseException,
    ) -> None:
        """Warn about a pair whose lookup the destination contract rejected."""
        log_warning(
            logger,
            "[%s] registry=%s pair=%s error_type=%s error_message=%s",
            ReconcileEventType.PROBE_REJECTED,
            registry_address,
            descriptor.label,
            type(error).__name__,
            str(error),
        )

    def log_pair_skipped(self, descriptor: PairDescriptor) -> None:
        """Log a missing pair left alone because of dry-run mode."""
        log_info(
            logger,
            "[%s] pair=%s",
            ReconcileEventType.PAIR_SKIPPED,
            descriptor.label,
        )

    def log_pair_appeared(self, descriptor: PairDescriptor) -> None:
        """Log a missing pair that existed when re-probed before creation."""
        log_info(
            logger,
            "[%s] pair=%s",
            ReconcileEventType.PAIR_APPEARED,
            descriptor.label,
        )

    def log_pair_created(self, descriptor: PairDescriptor, txhash: str) -> None:
        """Log a successful ``create_pair`` transaction."""
        log_info(
            logger,
            "[%s] pair=%s txhash=%s",
            ReconcileEventType.PAIR_CREATED,
            descriptor.label,
            txhash,
        )

    def log_pair_creation_failed(
        self, descriptor: PairDescriptor, error: BaseException
    ) -> None:
        """Log a pair whose creation failed; the batch carries on."""
        log_warning(
            logger,
            "[%s] pair=%s error_type=%s error_category=%s error_message=%s",
            ReconcileEventType.PAIR_CREATION_FAILED,
            descriptor.label,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def log_snapshot_written(self, path: Path, count: int) -> None:
        """Log a snapshot artifact written to disk."""
        log_info(
            logger,
            "[%s] path=%s pairs=%d",
            ReconcileEventType.SNAPSHOT_WRITTEN,
            path,
            count,
        )

    def log_run_completed(
        self,
        *,
        enumerated: int,
        existing: int,
        missing: int,
        rejected: int = 0,
        duration: dt.timedelta,
    ) -> None:
        """Log run completion with the headline counts."""
        log_info(
            logger,
            "[%s] enumerated=%d existing=%d missing=%d rejected=%d "
            "duration_seconds=%.3f",
            ReconcileEventType.RUN_COMPLETED,
            enumerated,
            existing,
            missing,
            rejected,
            duration.total_seconds(),
        )

    def log_run_failed(self, error: BaseException, duration: dt.timedelta) -> None:
        """Log a fatal run failure with error categorization."""
        log_error(
            logger,
            "[%s] duration_seconds=%.3f error_type=%s error_category=%s "
            "error_message=%s",
            ReconcileEventType.RUN_FAILED,
            duration.total_seconds(),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
