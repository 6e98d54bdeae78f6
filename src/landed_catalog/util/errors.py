from __future__ import annotations


class RetryableError(Exception):
    """Indicates a failure that may succeed on retry."""


class NonRetryableError(Exception):
    """Indicates a failure that should not be retried."""


class CatalogStoreError(RetryableError):
    """Raised by catalog stores when a read or write fails."""


class SlugConflictError(CatalogStoreError):
    def __init__(self, slug: str, message: str | None = None) -> None:
        super().__init__(message or f"slug already exists: {slug}")
        self.slug = slug


class CatalogNotConfiguredError(NonRetryableError):
    """Raised when no catalog store is available."""


class ShippingUnavailableError(RetryableError):
    """Raised when a shipping cost cannot be resolved for a product."""
