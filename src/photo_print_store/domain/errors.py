"""Exception taxonomy for the storefront core."""


class PhotoStoreError(Exception):
    """Base error carrying a user-facing message and optional context."""

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details = ", ".join(f"{key}={value}" for key, value in self.details.items())
            return f"{type(self).__name__}('{self.message}', {details})"
        return f"{type(self).__name__}('{self.message}')"


class InvalidAmount(PhotoStoreError):
    """Raised when a charge is not positive or below the provider minimum."""

    def __init__(self, amount: object, currency: str, minimum: object | None = None):
        if minimum is None:
            message = f"Invalid amount: {amount} {currency.upper()}"
        else:
            message = f"Amount must be at least {minimum} {currency.upper()}"
        super().__init__(
            message,
            details={"amount": amount, "currency": currency, "minimum": minimum},
        )
        self.amount = amount
        self.currency = currency
        self.minimum = minimum


class SessionCreationFailed(PhotoStoreError):
    """Raised when the payment provider could not create a checkout session."""


class SessionRetrievalFailed(PhotoStoreError):
    """Raised when a checkout session could not be fetched after redirect.

    Absence of a confirmation is not proof of non-payment, so callers offer a
    manual retry instead of treating this as a cancellation.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, object] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message, details)
        self.retryable = retryable


class StorageUnavailable(PhotoStoreError):
    """Raised inside storage adapters when a read or write cannot complete."""


class StaleSelection(PhotoStoreError):
    """Raised when a selection no longer resolves to unpurchased cart entries."""

    def __init__(self, ids: list[str] | tuple[str, ...]):
        super().__init__("Nothing left to pay for", details={"ids": list(ids)})
        self.ids = list(ids)


class UnknownSizeTier(PhotoStoreError):
    """Raised when a photo has no price for the requested size tier."""

    def __init__(self, photo_id: str, size_tier: str):
        super().__init__(
            f"Photo {photo_id} is not offered in size '{size_tier}'",
            details={"photo_id": photo_id, "size_tier": size_tier},
        )
        self.photo_id = photo_id
        self.size_tier = size_tier


class CatalogUnavailable(PhotoStoreError):
    """Raised when the catalog lookup fails."""
