"""
AW3 Pricing Quote Signing Test Suite

Tests for QuoteSigner and estimate id generation: signature format, tamper
detection, key separation, expiry checks and secret length enforcement.
"""

import re

from datetime import timedelta
from decimal import Decimal

import pytest

from aw3_pricing.core.exceptions import QuoteExpiredError, QuoteSignatureError
from aw3_pricing.models.fee_estimate import FeeEstimate, FeeEstimateRequest, RequesterProfile
from aw3_pricing.services.fee_calculation_service import FeeCalculationService
from aw3_pricing.utils.security import QuoteSigner, generate_estimate_id

from .conftest import FIXED_NOW, TEST_SECRET


@pytest.fixture
def estimate(
    calculator: FeeCalculationService,
    basic_request: FeeEstimateRequest,
    new_project: RequesterProfile,
) -> FeeEstimate:
    return calculator.estimate(basic_request, new_project)


class TestEstimateIds:
    def test_default_format(self) -> None:
        assert re.fullmatch(r"est-[0-9a-f]{8}", generate_estimate_id())

    def test_custom_length(self) -> None:
        assert len(generate_estimate_id(5)) == len("est-") + 5

    def test_ids_are_unique(self) -> None:
        ids = {generate_estimate_id() for _ in range(200)}

        assert len(ids) == 200

    def test_non_positive_length_rejected(self) -> None:
        with pytest.raises(ValueError):
            generate_estimate_id(0)


class TestQuoteSigner:
    def test_short_secret_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least 32"):
            QuoteSigner("too-short")

    def test_signature_is_stable(self, signer: QuoteSigner, estimate: FeeEstimate) -> None:
        assert signer.sign(estimate) == estimate.signature

    def test_unsigned_quote_fails_verification(
        self, signer: QuoteSigner, estimate: FeeEstimate
    ) -> None:
        unsigned = estimate.model_copy(update={"signature": ""})

        assert not signer.verify_signature(unsigned)

    @pytest.mark.parametrize(
        "update",
        [
            {"total_fees": Decimal("1.00")},
            {"campaign_budget": Decimal("1.00")},
            {"fee_estimate_id": "est-00000000"},
        ],
    )
    def test_tampered_quote_fails_verification(
        self, signer: QuoteSigner, estimate: FeeEstimate, update: dict
    ) -> None:
        tampered = estimate.model_copy(update=update)

        assert not signer.verify_signature(tampered)

    def test_tampered_breakdown_fails_verification(
        self, signer: QuoteSigner, estimate: FeeEstimate
    ) -> None:
        breakdown = estimate.fee_breakdown.model_copy(
            update={"final_service_fee": Decimal("0.01")}
        )
        tampered = estimate.model_copy(update={"fee_breakdown": breakdown})

        assert not signer.verify_signature(tampered)

    def test_extended_expiry_fails_verification(
        self, signer: QuoteSigner, estimate: FeeEstimate
    ) -> None:
        extended = estimate.model_copy(
            update={"valid_until": estimate.valid_until + timedelta(days=1)}
        )

        assert not signer.verify_signature(extended)

    def test_other_key_rejects_signature(self, estimate: FeeEstimate) -> None:
        other = QuoteSigner("another-secret-that-is-at-least-32-characters")

        assert not other.verify_signature(estimate)
        assert QuoteSigner(TEST_SECRET).verify_signature(estimate)


class TestQuoteVerification:
    def test_valid_quote_passes(self, signer: QuoteSigner, estimate: FeeEstimate) -> None:
        signer.verify(estimate, now=FIXED_NOW + timedelta(minutes=5))

    def test_quote_valid_up_to_expiry_instant(
        self, signer: QuoteSigner, estimate: FeeEstimate
    ) -> None:
        signer.verify(estimate, now=estimate.valid_until)

    def test_expired_quote_rejected(self, signer: QuoteSigner, estimate: FeeEstimate) -> None:
        with pytest.raises(QuoteExpiredError):
            signer.verify(estimate, now=estimate.valid_until + timedelta(seconds=1))

    def test_tampered_quote_rejected_before_expiry_check(
        self, signer: QuoteSigner, estimate: FeeEstimate
    ) -> None:
        tampered = estimate.model_copy(update={"total_fees": Decimal("0.00")})

        with pytest.raises(QuoteSignatureError):
            signer.verify(tampered, now=estimate.valid_until + timedelta(hours=1))
