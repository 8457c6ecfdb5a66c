"""
PAYMENT CALLBACK SIGNATURES

The payment provider signs every checkout callback with
HMAC-SHA256(key_secret, "<order_id>|<payment_id>"), hex encoded.
This is the only authenticity guarantee on the payment path.

RULES:
- Signatures compare exactly (lowercase hex, case-sensitive)
- Comparison is constant-time
- Secrets and signatures are never logged
"""

import hashlib
import hmac
import logging

from fintrack.errors import SignatureVerificationError

logger = logging.getLogger(__name__)

SIGNATURE_SEPARATOR = "|"


def compute_payment_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Return the hex HMAC-SHA256 the provider is expected to send"""
    message = f"{order_id}{SIGNATURE_SEPARATOR}{payment_id}"
    return hmac.new(
        secret.encode(),
        message.encode(),
        hashlib.sha256
    ).hexdigest()


def verify_payment_signature(secret: str, order_id: str, payment_id: str, signature: str) -> None:
    """
    Verify a checkout callback signature.

    Raises:
    - SignatureVerificationError if the signature is missing or does not match
    """
    if not secret:
        # An unconfigured secret must never verify anything
        logger.error("[PAYMENT] Signature check attempted without a key secret")
        raise SignatureVerificationError()

    if not (order_id and payment_id and signature):
        logger.warning("[PAYMENT] Signature check with missing callback fields")
        raise SignatureVerificationError()

    expected = compute_payment_signature(secret, order_id, payment_id)

    if not hmac.compare_digest(expected.encode(), signature.encode("utf-8")):
        logger.warning(f"[PAYMENT] Invalid signature for order {order_id}")
        raise SignatureVerificationError()
