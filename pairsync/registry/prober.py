"""Existence checks against the destination registry.

A factory's ``pair`` query has no "absent" answer: an unknown pair makes
the query itself fail with the contract's not-found error. The prober
turns exactly that failure into :attr:`ProbeStatus.NOT_FOUND`. Every other
failure propagates from :meth:`ExistenceProber.probe` so a flaky gateway can
never masquerade as a missing pair. :meth:`ExistenceProber.probe_all` sets
other contract rejections aside per pair and aborts only on transport
failures.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from pairsync.chain.errors import ApplicationNotFoundError, ApplicationOtherError

from .messages import pair_query
from .observability import ReconcileEventLogger

if typ.TYPE_CHECKING:
    from pairsync.chain.client import ContractClient

    from .models import AssetInfoPair, PairDescriptor


class ProbeStatus(enum.StrEnum):
    """Result variants of a single lookup."""

    FOUND = "found"
    NOT_FOUND = "not_found"


class Classification(enum.StrEnum):
    """Whether the destination registry holds a pair."""

    EXISTS = "exists"
    MISSING = "missing"


@dataclasses.dataclass(frozen=True, slots=True)
class ProbeResult:
    """Typed outcome of a lookup.

    Attributes
    ----------
    status
        ``FOUND`` or ``NOT_FOUND``.
    detail
        The registry's pair detail when found.
    matched
        The ``asset_infos`` ordering that produced the hit.

    """

    status: ProbeStatus
    detail: typ.Any = None
    matched: AssetInfoPair | None = None

    @classmethod
    def found(cls, detail: object, matched: AssetInfoPair) -> ProbeResult:
        """Return a hit carrying the registry's pair detail."""
        return cls(status=ProbeStatus.FOUND, detail=detail, matched=matched)

    @classmethod
    def not_found(cls) -> ProbeResult:
        """Return a miss."""
        return cls(status=ProbeStatus.NOT_FOUND)

    @property
    def exists(self) -> bool:
        """Return True when the pair was found."""
        return self.status is ProbeStatus.FOUND

    @property
    def classification(self) -> Classification:
        """Map the probe status onto the pipeline classification."""
        return Classification.EXISTS if self.exists else Classification.MISSING


@dataclasses.dataclass(frozen=True, slots=True)
class RejectedProbe:
    """A pair whose lookup the destination contract refused to answer."""

    descriptor: PairDescriptor
    error: str


@dataclasses.dataclass(frozen=True, slots=True)
class ProbePartition:
    """Enumerated descriptors split by destination presence, order kept.

    ``rejected`` holds pairs that are neither known to exist nor known to
    be missing; they are reported and never created.
    """

    existing: tuple[PairDescriptor, ...]
    missing: tuple[PairDescriptor, ...]
    rejected: tuple[RejectedProbe, ...] = ()


class ExistenceProber:
    """Classify pairs as present in or missing from a destination registry.

    Parameters
    ----------
    client
        Contract client used for the read-only lookups.
    registry_address
        Destination factory contract.
    check_reversed
        Also look the pair up with its assets swapped before declaring it
        missing. Only needed for registries that do not normalise order.

    """

    def __init__(
        self,
        client: ContractClient,
        registry_address: str,
        *,
        check_reversed: bool = False,
        event_logger: ReconcileEventLogger | None = None,
    ) -> None:
        """Bind the prober to a destination registry."""
        self._client = client
        self._registry_address = registry_address
        self._check_reversed = check_reversed
        self._events = event_logger or ReconcileEventLogger()

    @property
    def registry_address(self) -> str:
        """Address of the destination registry."""
        return self._registry_address

    async def _lookup(self, asset_infos: AssetInfoPair) -> ProbeResult:
        try:
            detail = await self._client.query(
                self._registry_address, pair_query(asset_infos)
            )
        except ApplicationNotFoundError:
            return ProbeResult.not_found()
        return ProbeResult.found(detail, asset_infos)

    async def probe(self, descriptor: PairDescriptor) -> ProbeResult:
        """Look ``descriptor`` up in the destination registry.

        Raises
        ------
        ContractCallError
            For any failure other than the contract's not-found error.

        """
        result = await self._lookup(descriptor.asset_infos)
        if result.exists or not self._check_reversed:
            return result

        first, second = descriptor.asset_infos
        if first == second:
            return result
        return await self._lookup((second, first))

    async def classify(self, descriptor: PairDescriptor) -> Classification:
        """Return whether ``descriptor`` exists in the destination registry."""
        return (await self.probe(descriptor)).classification

    async def probe_all(
        self, descriptors: typ.Iterable[PairDescriptor]
    ) -> ProbePartition:
        """Probe descriptors one at a time and partition them.

        A contract rejection of one lookup is recorded against that pair and
        the remaining pairs are still probed.

        Raises
        ------
        TransportError
            On the first lookup that got no contract answer; the partition
            is abandoned.

        """
        existing: list[PairDescriptor] = []
        missing: list[PairDescriptor] = []
        rejected: list[RejectedProbe] = []
        for descriptor in descriptors:
            try:
                classification = await self.classify(descriptor)
            except ApplicationOtherError as exc:
                self._events.log_probe_rejected(
                    registry_address=self._registry_address,
                    descriptor=descriptor,
                    error=exc,
                )
                rejected.append(RejectedProbe(descriptor=descriptor, error=str(exc)))
                continue
            if classification is Classification.EXISTS:
                existing.append(descriptor)
                continue
            self._events.log_probe_missing(
                registry_address=self._registry_address, descriptor=descriptor
            )
            missing.append(descriptor)
        return ProbePartition(
            existing=tuple(existing),
            missing=tuple(missing),
            rejected=tuple(rejected),
        )
