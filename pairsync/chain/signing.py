"""Transaction signer protocol and environment-driven factory.

Key management lives outside pairsync. A deployment provides a factory,
named by ``PAIRSYNC_SIGNER`` as ``package.module:callable``, which returns an
object implementing :class:`TransactionSigner`.
"""

from __future__ import annotations

import importlib
import os
import typing as typ

from pairsync.chain.errors import ChainConfigError


class TransactionSigner(typ.Protocol):
    """Produces broadcast-ready transactions for contract executions."""

    async def sign_execute(
        self,
        *,
        sender: str,
        contract_address: str,
        message: dict[str, typ.Any],
    ) -> str:
        """Return base64-encoded signed tx bytes for one ``MsgExecuteContract``."""
        ...


def create_signer() -> TransactionSigner | None:
    """Load the signer named by ``PAIRSYNC_SIGNER``.

    Returns
    -------
    TransactionSigner | None
        The signer built by the configured factory, or ``None`` when the
        variable is unset.

    Raises
    ------
    ChainConfigError
        If the reference is malformed or cannot be imported.

    """
    raw = os.environ.get("PAIRSYNC_SIGNER", "").strip()
    if not raw:
        return None

    module_name, sep, attr = raw.partition(":")
    if not sep or not module_name or not attr:
        raise ChainConfigError.invalid_setting("PAIRSYNC_SIGNER", raw)

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as exc:
        raise ChainConfigError.invalid_setting("PAIRSYNC_SIGNER", raw) from exc

    return typ.cast("TransactionSigner", factory())
