"""Contract client primitives for reaching registry contracts."""

from __future__ import annotations

from .client import (
    ContractClient,
    LcdContractClient,
    TxResult,
    application_error_from_payload,
)
from .config import LcdConfig
from .errors import (
    ApplicationError,
    ApplicationNotFoundError,
    ApplicationOtherError,
    ChainConfigError,
    ContractCallError,
    ResponseShapeError,
    SigningError,
    TransportError,
)
from .signing import TransactionSigner, create_signer

__all__ = [
    "ApplicationError",
    "ApplicationNotFoundError",
    "ApplicationOtherError",
    "ChainConfigError",
    "ContractCallError",
    "ContractClient",
    "LcdConfig",
    "LcdContractClient",
    "ResponseShapeError",
    "SigningError",
    "TransactionSigner",
    "TransportError",
    "TxResult",
    "application_error_from_payload",
    "create_signer",
]
