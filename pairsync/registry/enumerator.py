"""Cursor-paginated enumeration of a registry's ``pairs`` listing.

Registries page with the last item's ``asset_infos`` as ``start_after``
and have no "has more" flag: a page shorter than the requested limit is
the last one. When the remainder exactly fills a page, one further request
returns an empty page.

Example:
-------
Enumerate every pair of a factory::

    pairs = await enumerate_pairs(client, "terra1...", page_size=30)

"""

from __future__ import annotations

import dataclasses
import typing as typ

from pairsync.chain.errors import ContractCallError, ResponseShapeError

from .errors import EnumerationError, InvalidPageSizeError
from .messages import pairs_query
from .models import PairDescriptor
from .observability import ReconcileEventLogger

if typ.TYPE_CHECKING:
    from pairsync.chain.client import ContractClient

    from .models import AssetInfoPair


@dataclasses.dataclass(frozen=True, slots=True)
class Page:
    """One page of descriptors and where to continue from.

    ``next_cursor`` is ``None`` once the listing is exhausted.
    """

    items: tuple[PairDescriptor, ...]
    next_cursor: AssetInfoPair | None

    @property
    def exhausted(self) -> bool:
        """Return True when no further page should be requested."""
        return self.next_cursor is None


def page_from_items(items: typ.Sequence[PairDescriptor], page_size: int) -> Page:
    """Apply the short-page termination rule to a fetched batch."""
    batch = tuple(items)
    if len(batch) < page_size:
        return Page(items=batch, next_cursor=None)
    return Page(items=batch, next_cursor=batch[-1].asset_infos)


def validate_page_size(page_size: object) -> int:
    """Return ``page_size`` if it is a positive integer.

    Raises
    ------
    InvalidPageSizeError
        For booleans, non-integers, zero and negatives.

    """
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise InvalidPageSizeError(page_size)
    return page_size


class PageFetcher(typ.Protocol):
    """Fetches one page of a cursor-paginated pair listing."""

    async def fetch(self, cursor: AssetInfoPair | None, page_size: int) -> Page:
        """Return up to ``page_size`` descriptors after ``cursor``."""
        ...


def _descriptors_from_response(data: object) -> list[PairDescriptor]:
    if not isinstance(data, dict):
        raise ResponseShapeError.missing("pairs")
    pairs = data.get("pairs")
    if not isinstance(pairs, list):
        raise ResponseShapeError.missing("pairs")
    return [PairDescriptor.from_wire(entry) for entry in pairs]


class RegistryPageFetcher:
    """:class:`PageFetcher` issuing ``pairs`` queries to a factory contract."""

    def __init__(self, client: ContractClient, registry_address: str) -> None:
        """Bind the fetcher to a client and registry contract."""
        self._client = client
        self._registry_address = registry_address

    @property
    def registry_address(self) -> str:
        """Address of the registry being listed."""
        return self._registry_address

    async def fetch(self, cursor: AssetInfoPair | None, page_size: int) -> Page:
        """Query one page and decode its descriptors."""
        data = await self._client.query(
            self._registry_address, pairs_query(page_size, cursor)
        )
        return page_from_items(_descriptors_from_response(data), page_size)


async def collect_pages(
    fetcher: PageFetcher,
    page_size: int,
    *,
    registry_address: str,
    event_logger: ReconcileEventLogger | None = None,
) -> list[PairDescriptor]:
    """Drain ``fetcher`` from the first page and return every descriptor.

    Duplicates (same ordered ``asset_infos``) are dropped with a warning;
    only a concurrently mutated registry produces them. A full page made
    only of duplicates ends the listing with an error.

    Raises
    ------
    EnumerationError
        If any page fails or the cursor stops advancing. Partial results
        are discarded.

    """
    validate_page_size(page_size)
    events = event_logger or ReconcileEventLogger()
    descriptors: list[PairDescriptor] = []
    seen: set[AssetInfoPair] = set()
    cursor: AssetInfoPair | None = None
    page_number = 0

    while True:
        try:
            page = await fetcher.fetch(cursor, page_size)
        except ContractCallError as exc:
            raise EnumerationError(registry_address, str(exc)) from exc

        page_number += 1
        events.log_page_fetched(
            registry_address=registry_address,
            page_number=page_number,
            items=len(page.items),
            exhausted=page.exhausted,
        )
        added = 0
        for descriptor in page.items:
            if descriptor.asset_infos in seen:
                events.log_duplicate_skipped(
                    registry_address=registry_address, descriptor=descriptor
                )
                continue
            seen.add(descriptor.asset_infos)
            descriptors.append(descriptor)
            added += 1

        if page.next_cursor is None:
            return descriptors
        if added == 0:
            raise EnumerationError(
                registry_address,
                f"page {page_number} repeated earlier pairs; cursor did not advance",
            )
        cursor = page.next_cursor


async def enumerate_pairs(
    client: ContractClient,
    registry_address: str,
    page_size: int,
    *,
    event_logger: ReconcileEventLogger | None = None,
) -> list[PairDescriptor]:
    """Return every pair listed by ``registry_address`` in emission order."""
    return await collect_pages(
        RegistryPageFetcher(client, registry_address),
        page_size,
        registry_address=registry_address,
        event_logger=event_logger,
    )
