"""
Tests for payment callback signature verification.

HMAC-SHA256(secret, "<order_id>|<payment_id>") must match the supplied hex
signature exactly; any single-character change to the inputs must reject.
"""

import hashlib
import hmac

import pytest

from fintrack.core.signatures import compute_payment_signature, verify_payment_signature
from fintrack.errors import SignatureVerificationError

SECRET = "test_secret"
ORDER_ID = "order_Nx1aB2cD3eF4gH"
PAYMENT_ID = "pay_Qw9eR8tY7uI6oP"


def _mutate(value: str, index: int) -> str:
    """Replace one character with a different one"""
    replacement = "X" if value[index] != "X" else "Y"
    return value[:index] + replacement + value[index + 1:]


class TestComputeSignature:

    def test_matches_reference_hmac(self):
        expected = hmac.new(
            SECRET.encode(), f"{ORDER_ID}|{PAYMENT_ID}".encode(), hashlib.sha256
        ).hexdigest()
        assert compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID) == expected

    def test_is_lowercase_hex(self):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)


class TestVerifySignature:

    def test_valid_signature_passes(self):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        verify_payment_signature(SECRET, ORDER_ID, PAYMENT_ID, signature)

    def test_uppercase_signature_rejected(self):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(SECRET, ORDER_ID, PAYMENT_ID, signature.upper())

    @pytest.mark.parametrize("index", [0, 7, len(ORDER_ID) - 1])
    def test_mutated_order_id_rejected(self, index):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(SECRET, _mutate(ORDER_ID, index), PAYMENT_ID, signature)

    @pytest.mark.parametrize("index", [0, 5, len(PAYMENT_ID) - 1])
    def test_mutated_payment_id_rejected(self, index):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(SECRET, ORDER_ID, _mutate(PAYMENT_ID, index), signature)

    @pytest.mark.parametrize("index", [0, 4, len(SECRET) - 1])
    def test_mutated_secret_rejected(self, index):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(_mutate(SECRET, index), ORDER_ID, PAYMENT_ID, signature)

    def test_swapped_ids_rejected(self):
        signature = compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID)
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(SECRET, PAYMENT_ID, ORDER_ID, signature)

    def test_empty_secret_never_verifies(self):
        signature = compute_payment_signature("", ORDER_ID, PAYMENT_ID)
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature("", ORDER_ID, PAYMENT_ID, signature)

    @pytest.mark.parametrize("field", ["order_id", "payment_id", "signature"])
    def test_missing_fields_rejected(self, field):
        values = {
            "order_id": ORDER_ID,
            "payment_id": PAYMENT_ID,
            "signature": compute_payment_signature(SECRET, ORDER_ID, PAYMENT_ID),
        }
        values[field] = ""
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(SECRET, values["order_id"], values["payment_id"], values["signature"])

    def test_non_ascii_signature_rejected(self):
        with pytest.raises(SignatureVerificationError):
            verify_payment_signature(SECRET, ORDER_ID, PAYMENT_ID, "é" * 64)
