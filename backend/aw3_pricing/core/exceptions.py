"""
Domain exceptions for the AW3 pricing service.

Services raise these; the HTTP layer maps them to status codes in the
exception handlers registered by ``aw3_pricing.main``.
"""


class FeeServiceError(Exception):
    """Base exception for fee estimation and quote handling."""


class InvalidInputError(FeeServiceError):
    """
    Malformed or out-of-range estimation input.

    Attributes:
        field: Wire name of the offending field (e.g. ``complexity``).
        message: Human-readable reason.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")

    def to_error_map(self) -> dict[str, str]:
        return {self.field: self.message}


class QuoteVerificationError(FeeServiceError):
    """A presented quote cannot be redeemed."""


class QuoteNotFoundError(QuoteVerificationError):
    """No issued quote exists for the presented estimate id."""


class QuoteExpiredError(QuoteVerificationError):
    """The quote's validity window has passed."""


class QuoteSignatureError(QuoteVerificationError):
    """The quote or its signature was tampered with."""


__all__ = [
    "FeeServiceError",
    "InvalidInputError",
    "QuoteExpiredError",
    "QuoteNotFoundError",
    "QuoteSignatureError",
    "QuoteVerificationError",
]
