"""Typed pair registry structures and their CosmWasm wire forms.

Assets and pair types use the externally tagged JSON that factory
contracts speak::

    {"token": {"contract_addr": "terra1..."}}
    {"native_token": {"denom": "uluna"}}
    {"xyk": {}} / {"stable": {}} / {"custom": "concentrated"}

A :class:`PairDescriptor` keeps the decoded ``asset_infos`` and
``pair_type`` next to the untouched wire object so every other field is
carried through to snapshots unchanged.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec

from pairsync.chain.errors import ResponseShapeError


class Token(msgspec.Struct, frozen=True):
    """Fungible token identified by its contract address."""

    contract_addr: str


class NativeToken(msgspec.Struct, frozen=True):
    """Native chain currency identified by its denomination."""

    denom: str


type AssetInfo = Token | NativeToken
type AssetInfoPair = tuple[AssetInfo, AssetInfo]


def asset_info_to_wire(info: AssetInfo) -> dict[str, typ.Any]:
    """Return the externally tagged JSON form of ``info``."""
    if isinstance(info, Token):
        return {"token": {"contract_addr": info.contract_addr}}
    return {"native_token": {"denom": info.denom}}


def _single_entry(raw: object, *, field: str) -> tuple[str, object]:
    if not isinstance(raw, dict) or len(raw) != 1:
        raise ResponseShapeError.missing(field)
    ((tag, body),) = raw.items()
    if not isinstance(tag, str):
        raise ResponseShapeError.missing(field)
    return tag, body


def asset_info_from_wire(raw: object) -> AssetInfo:
    """Decode one asset identifier.

    Raises
    ------
    ResponseShapeError
        If ``raw`` is not a recognised asset variant.

    """
    tag, body = _single_entry(raw, field="asset_info")
    if not isinstance(body, dict):
        raise ResponseShapeError.missing(f"asset_info.{tag}")

    if tag == "token":
        address = body.get("contract_addr")
        if isinstance(address, str):
            return Token(contract_addr=address)
        raise ResponseShapeError.missing("asset_info.token.contract_addr")

    if tag == "native_token":
        denom = body.get("denom")
        if isinstance(denom, str):
            return NativeToken(denom=denom)
        raise ResponseShapeError.missing("asset_info.native_token.denom")

    raise ResponseShapeError.missing("asset_info")


def asset_infos_to_wire(pair: AssetInfoPair) -> list[dict[str, typ.Any]]:
    """Return the JSON array form of an asset-info pair."""
    return [asset_info_to_wire(pair[0]), asset_info_to_wire(pair[1])]


def asset_infos_from_wire(raw: object) -> AssetInfoPair:
    """Decode a two-element ``asset_infos`` array."""
    if not isinstance(raw, list) or len(raw) != 2:  # noqa: PLR2004 - a pair
        raise ResponseShapeError.missing("asset_infos")
    return (asset_info_from_wire(raw[0]), asset_info_from_wire(raw[1]))


def _asset_sort_key(info: AssetInfo) -> tuple[str, str]:
    if isinstance(info, Token):
        return ("token", info.contract_addr)
    return ("native_token", info.denom)


def pair_key(pair: AssetInfoPair) -> tuple[tuple[str, str], tuple[str, str]]:
    """Return an order-insensitive key identifying the trading pair."""
    first, second = sorted((_asset_sort_key(pair[0]), _asset_sort_key(pair[1])))
    return (first, second)


def describe_asset_infos(pair: AssetInfoPair) -> str:
    """Render a pair as ``kind:id|kind:id`` for log lines."""
    return "|".join(f"{kind}:{ident}" for kind, ident in map(_asset_sort_key, pair))


class PairKind(enum.StrEnum):
    """Coarse classification of a factory pair type."""

    CONSTANT_PRODUCT = "constant-product"
    STABLE = "stable"
    OTHER = "other"


_KIND_BY_TAG = {"xyk": PairKind.CONSTANT_PRODUCT, "stable": PairKind.STABLE}


class PairType(msgspec.Struct, frozen=True):
    """Pair type tag plus its (usually empty) variant body.

    Tags other than ``xyk`` and ``stable`` are kept verbatim so creation
    requests forward exactly what the source registry reported.
    """

    tag: str
    body: typ.Any = msgspec.field(default_factory=dict)

    @property
    def kind(self) -> PairKind:
        """Return the coarse kind for this tag."""
        return _KIND_BY_TAG.get(self.tag, PairKind.OTHER)

    def to_wire(self) -> dict[str, typ.Any]:
        """Return the externally tagged JSON form."""
        return {self.tag: self.body}

    @classmethod
    def from_wire(cls, raw: object) -> PairType:
        """Decode a pair type; an absent value means constant product."""
        if raw is None:
            return CONSTANT_PRODUCT
        tag, body = _single_entry(raw, field="pair_type")
        return cls(tag=tag, body=body)


CONSTANT_PRODUCT = PairType(tag="xyk")
STABLE = PairType(tag="stable")


class PairDescriptor(msgspec.Struct, frozen=True):
    """One pair as listed by a registry.

    Attributes
    ----------
    asset_infos : AssetInfoPair
        The ordered asset pair; also the enumeration cursor.
    pair_type : PairType
        Pair type forwarded to ``create_pair``.
    raw : dict[str, Any]
        The wire object exactly as the registry returned it.

    """

    asset_infos: AssetInfoPair
    pair_type: PairType
    raw: dict[str, typ.Any]

    @classmethod
    def from_wire(cls, raw: object) -> PairDescriptor:
        """Decode a descriptor from a ``pairs`` response entry.

        Raises
        ------
        ResponseShapeError
            If ``asset_infos`` or ``pair_type`` is malformed.

        """
        if not isinstance(raw, dict):
            raise ResponseShapeError.missing("pairs[]")
        return cls(
            asset_infos=asset_infos_from_wire(raw.get("asset_infos")),
            pair_type=PairType.from_wire(raw.get("pair_type")),
            raw=dict(raw),
        )

    @classmethod
    def build(
        cls,
        asset_infos: AssetInfoPair,
        pair_type: PairType = CONSTANT_PRODUCT,
        **extra: typ.Any,  # noqa: ANN401 - passthrough metadata
    ) -> PairDescriptor:
        """Build a descriptor and its wire form from typed values."""
        raw: dict[str, typ.Any] = {
            "asset_infos": asset_infos_to_wire(asset_infos),
            "pair_type": pair_type.to_wire(),
            **extra,
        }
        return cls(asset_infos=asset_infos, pair_type=pair_type, raw=raw)

    @property
    def key(self) -> tuple[tuple[str, str], tuple[str, str]]:
        """Order-insensitive identity of the trading pair."""
        return pair_key(self.asset_infos)

    @property
    def label(self) -> str:
        """Short human-readable rendering for logs."""
        return describe_asset_infos(self.asset_infos)

    def to_wire(self) -> dict[str, typ.Any]:
        """Return a copy of the original wire object."""
        return dict(self.raw)
