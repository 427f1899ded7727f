"""
Security utilities module for AW3 Pricing.

This module provides the integrity primitives for fee quotes:
- Estimate id generation (``est-`` + random hex)
- HMAC-SHA256 quote signing over the canonical quote payload
- Constant-time signature verification and expiry checks

The signing key is a server secret supplied from configuration
(``Settings.quote_signing_secret``); it is never stored on the quote.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional
import hashlib
import hmac
import logging
import secrets

from aw3_pricing.core.exceptions import QuoteExpiredError, QuoteSignatureError

if TYPE_CHECKING:
    from aw3_pricing.models.fee_estimate import FeeEstimate

# Configure logger for security operations
logger = logging.getLogger(__name__)

# ==============================================================================
# CONSTANTS
# ==============================================================================

ESTIMATE_ID_PREFIX = "est-"
SIGNATURE_PREFIX = "0x"

# Minimum length of the quote signing secret
MIN_SECRET_LENGTH = 32


# ==============================================================================
# IDENTIFIER GENERATION
# ==============================================================================

def generate_estimate_id(length: int = 8) -> str:
    """
    Generate a unique, opaque fee estimate identifier.

    Args:
        length: Number of hex characters after the prefix. Defaults to 8.

    Returns:
        Identifier of the form ``est-1a2b3c4d``.
    """
    if length <= 0:
        raise ValueError("Length must be a positive integer")

    return ESTIMATE_ID_PREFIX + secrets.token_hex((length + 1) // 2)[:length]


# ==============================================================================
# QUOTE SIGNING
# ==============================================================================

class QuoteSigner:
    """
    Keyed-hash signer for fee quotes.

    The signature binds the estimate id, expiry and every monetary figure of
    the quote, so any edit before redemption invalidates it.

    Example:
        >>> signer = QuoteSigner("x" * 32)
        >>> signed = estimate.model_copy(update={"signature": signer.sign(estimate)})
        >>> signer.verify_signature(signed)
        True
    """

    def __init__(self, secret: str) -> None:
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"Quote signing secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        self._key = secret.encode("utf-8")

    def sign(self, estimate: "FeeEstimate") -> str:
        """Return the ``0x``-prefixed HMAC-SHA256 hex digest of the quote payload."""
        digest = hmac.new(
            self._key,
            estimate.signing_payload().encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return SIGNATURE_PREFIX + digest

    def verify_signature(self, estimate: "FeeEstimate") -> bool:
        """Check the quote's stored signature against its fields, in constant time."""
        if not estimate.signature:
            return False
        return hmac.compare_digest(self.sign(estimate), estimate.signature)

    def verify(self, estimate: "FeeEstimate", now: Optional[datetime] = None) -> None:
        """
        Verify that a quote is untampered and still valid.

        Args:
            estimate: The quote as presented for redemption.
            now: Reference time; defaults to the current UTC time.

        Raises:
            QuoteSignatureError: If the signature does not match the quote.
            QuoteExpiredError: If ``now`` is past ``valid_until``.
        """
        if not self.verify_signature(estimate):
            logger.warning("Signature mismatch for quote %s", estimate.fee_estimate_id)
            raise QuoteSignatureError(
                f"Signature mismatch for fee estimate {estimate.fee_estimate_id}"
            )

        reference = now or datetime.now(timezone.utc)
        if reference > estimate.valid_until:
            logger.info(
                "Quote %s expired at %s",
                estimate.fee_estimate_id,
                estimate.valid_until.isoformat(),
            )
            raise QuoteExpiredError(
                f"Fee estimate {estimate.fee_estimate_id} expired at "
                f"{estimate.valid_until.isoformat()}"
            )


__all__ = [
    "ESTIMATE_ID_PREFIX",
    "SIGNATURE_PREFIX",
    "QuoteSigner",
    "generate_estimate_id",
]
