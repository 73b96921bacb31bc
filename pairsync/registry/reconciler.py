"""Create missing pairs in the destination registry.

The destination contract offers no idempotency key for ``create_pair``,
so each pair is re-probed right before its transaction. Failures are
recorded per pair and never stop the batch.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from pairsync.chain.errors import ChainConfigError, ContractCallError

from .messages import create_pair_message
from .observability import ReconcileEventLogger
from .prober import ExistenceProber

if typ.TYPE_CHECKING:
    from pairsync.chain.client import ContractClient

    from .models import PairDescriptor


class Outcome(enum.StrEnum):
    """Terminal reconciliation state of one descriptor."""

    ALREADY_EXISTS = "already-exists"
    CREATED = "missing-and-created"
    CREATION_FAILED = "missing-and-creation-failed"
    SKIPPED = "missing-and-skipped"


@dataclasses.dataclass(frozen=True, slots=True)
class PairOutcome:
    """Outcome for one descriptor, with the tx hash or error when relevant."""

    descriptor: PairDescriptor
    outcome: Outcome
    txhash: str | None = None
    error: str | None = None


class Reconciler:
    """Drive missing descriptors to a terminal :class:`Outcome`.

    Parameters
    ----------
    client
        Contract client used for re-probes and ``create_pair`` executions.
    registry_address
        Destination factory contract.
    dry_run
        Record every pair as skipped and never execute. Defaults to True.
    sender
        Account that signs ``create_pair``; required unless ``dry_run``.
    prober
        Prober used for the pre-creation check; built from ``client`` and
        ``registry_address`` when omitted.

    Raises
    ------
    ChainConfigError
        If ``dry_run`` is False and no sender is configured.

    """

    def __init__(  # noqa: PLR0913
        self,
        client: ContractClient,
        registry_address: str,
        *,
        dry_run: bool = True,
        sender: str | None = None,
        prober: ExistenceProber | None = None,
        event_logger: ReconcileEventLogger | None = None,
    ) -> None:
        """Configure the reconciler for one destination registry."""
        if not dry_run and not sender:
            raise ChainConfigError.missing_setting("PAIRSYNC_SENDER")
        self._client = client
        self._registry_address = registry_address
        self._dry_run = dry_run
        self._sender = sender or ""
        self._events = event_logger or ReconcileEventLogger()
        self._prober = prober or ExistenceProber(
            client, registry_address, event_logger=self._events
        )

    @property
    def dry_run(self) -> bool:
        """Return True when no transactions will be sent."""
        return self._dry_run

    async def reconcile(
        self, missing: typ.Iterable[PairDescriptor]
    ) -> list[PairOutcome]:
        """Return one outcome per descriptor, in input order."""
        return [await self._reconcile_one(descriptor) for descriptor in missing]

    async def _reconcile_one(self, descriptor: PairDescriptor) -> PairOutcome:
        if self._dry_run:
            self._events.log_pair_skipped(descriptor)
            return PairOutcome(descriptor=descriptor, outcome=Outcome.SKIPPED)

        try:
            probe = await self._prober.probe(descriptor)
        except ContractCallError as exc:
            return self._failed(descriptor, exc)
        if probe.exists:
            self._events.log_pair_appeared(descriptor)
            return PairOutcome(descriptor=descriptor, outcome=Outcome.ALREADY_EXISTS)

        try:
            result = await self._client.execute(
                self._registry_address,
                self._sender,
                create_pair_message(descriptor),
            )
        except ContractCallError as exc:
            return self._failed(descriptor, exc)

        self._events.log_pair_created(descriptor, result.txhash)
        return PairOutcome(
            descriptor=descriptor, outcome=Outcome.CREATED, txhash=result.txhash
        )

    def _failed(self, descriptor: PairDescriptor, exc: Exception) -> PairOutcome:
        self._events.log_pair_creation_failed(descriptor, exc)
        return PairOutcome(
            descriptor=descriptor,
            outcome=Outcome.CREATION_FAILED,
            error=str(exc),
        )


async def reconcile(  # noqa: PLR0913
    client: ContractClient,
    missing: typ.Iterable[PairDescriptor],
    registry_address: str,
    *,
    dry_run: bool = True,
    sender: str | None = None,
    event_logger: ReconcileEventLogger | None = None,
) -> list[PairOutcome]:
    """Reconcile ``missing`` against ``registry_address`` in one call."""
    reconciler = Reconciler(
        client,
        registry_address,
        dry_run=dry_run,
        sender=sender,
        event_logger=event_logger,
    )
    return await reconciler.reconcile(missing)
