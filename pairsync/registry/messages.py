"""Factory contract query and execute messages."""

from __future__ import annotations

import typing as typ

from pairsync.registry.models import asset_infos_to_wire

if typ.TYPE_CHECKING:
    from pairsync.registry.models import AssetInfoPair, PairDescriptor


def pairs_query(
    limit: int, start_after: AssetInfoPair | None = None
) -> dict[str, typ.Any]:
    """Build a ``pairs`` listing query; ``start_after`` is omitted when unset."""
    body: dict[str, typ.Any] = {"limit": limit}
    if start_after is not None:
        body["start_after"] = asset_infos_to_wire(start_after)
    return {"pairs": body}


def pair_query(asset_infos: AssetInfoPair) -> dict[str, typ.Any]:
    """Build a single-pair lookup query."""
    return {"pair": {"asset_infos": asset_infos_to_wire(asset_infos)}}


def create_pair_message(descriptor: PairDescriptor) -> dict[str, typ.Any]:
    """Build the ``create_pair`` execute message for ``descriptor``."""
    return {
        "create_pair": {
            "asset_infos": asset_infos_to_wire(descriptor.asset_infos),
            "pair_type": descriptor.pair_type.to_wire(),
        }
    }
