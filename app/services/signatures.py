"""HMAC-SHA256 signatures used by the payment gateway"""

import hashlib
import hmac
from typing import Optional, Union


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def payment_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """Signature the checkout returns for a completed payment: HMAC(order_id|payment_id)"""
    return _hmac_hex(secret, f"{gateway_order_id}|{gateway_payment_id}".encode("utf-8"))


def webhook_signature(secret: str, raw_body: Union[bytes, str]) -> str:
    """Signature sent alongside a webhook: HMAC over the raw request body"""
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    return _hmac_hex(secret, raw_body)


def signatures_match(expected: str, provided: Optional[str]) -> bool:
    """Constant-time comparison; a missing signature never matches"""
    if not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.strip().encode("utf-8"))
