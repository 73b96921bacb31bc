"""Errors specific to registry reconciliation."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for registry reconciliation errors."""


class EnumerationError(RegistryError):
    """Raised when listing the source registry fails part way through."""

    def __init__(self, registry_address: str, reason: str) -> None:
        """Initialise with the registry address and failure reason."""
        self.registry_address = registry_address
        self.reason = reason
        super().__init__(
            f"Enumeration failed for registry {registry_address}: {reason}"
        )


class InvalidPageSizeError(ValueError):
    """Raised when a page size is not a positive integer."""

    def __init__(self, page_size: object) -> None:
        """Build a consistent error message for the invalid value."""
        super().__init__(f"page_size must be a positive integer, got {page_size!r}")
