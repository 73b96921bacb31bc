"""Errors raised by contract query and execute calls."""

from __future__ import annotations

import typing as typ


class ContractCallError(Exception):
    """Base class for failures of a remote contract call."""


class TransportError(ContractCallError):
    """Raised when the call never produced a contract-level answer.

    Covers connectivity failures, timeouts, gateway and rate-limit responses
    and bodies that cannot be decoded.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> TransportError:
        """Return an error for HTTP responses without a contract payload."""
        return cls(f"LCD HTTP {status_code}", status_code=status_code)

    @classmethod
    def unreachable(cls, url: str, reason: object) -> TransportError:
        """Return an error for requests that failed before a response."""
        return cls(f"LCD request to {url} failed: {reason}")


class ResponseShapeError(TransportError):
    """Raised when a response body is not the JSON shape we expect."""

    @classmethod
    def missing(cls, field: str) -> ResponseShapeError:
        """Return an error for a missing response field."""
        return cls(f"LCD response missing expected field: {field}")

    @classmethod
    def undecodable(cls, reason: object) -> ResponseShapeError:
        """Return an error for bodies that are not valid JSON."""
        return cls(f"LCD response is not valid JSON: {reason}")


class ApplicationError(ContractCallError):
    """Raised when the contract, or the chain on its behalf, rejected a call.

    Attributes
    ----------
    code
        Numeric error code reported by the gateway or the transaction.
    data
        Decoded error payload as returned by the gateway.
    contract_error
        The contract's own error text with gateway framing removed.

    """

    def __init__(
        self,
        code: int,
        data: typ.Any,  # noqa: ANN401 - raw gateway payload
        *,
        contract_error: str = "",
    ) -> None:
        """Initialise with the structured error payload."""
        self.code = code
        self.data = data
        self.contract_error = contract_error
        detail = contract_error or data
        super().__init__(f"contract error (code {code}): {detail}")


class ApplicationNotFoundError(ApplicationError):
    """Raised when the contract reports that the requested item does not exist."""


class ApplicationOtherError(ApplicationError):
    """Raised for every contract rejection other than not-found."""


class SigningError(ContractCallError):
    """Raised when the transaction signer could not produce a transaction."""

    @classmethod
    def failed(cls, reason: BaseException) -> SigningError:
        """Return an error wrapping a failure raised by the signer."""
        return cls(f"Signing failed: {type(reason).__name__}: {reason}")


class ChainConfigError(RuntimeError):
    """Raised when chain access configuration is missing or invalid."""

    @classmethod
    def missing_setting(cls, name: str) -> ChainConfigError:
        """Return an error for a required setting that is unset."""
        return cls(f"{name} is required")

    @classmethod
    def invalid_setting(cls, name: str, value: str) -> ChainConfigError:
        """Return an error for a setting with an unusable value."""
        return cls(f"Invalid {name} value: {value!r}")

    @classmethod
    def missing_signer(cls) -> ChainConfigError:
        """Return an error when execution is requested without a signer."""
        return cls(
            "A transaction signer is required to execute contracts; "
            "set PAIRSYNC_SIGNER to a module:factory reference"
        )
