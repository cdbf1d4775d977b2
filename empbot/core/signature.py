"""X-Line-Signature verification."""

import base64
import hashlib
import hmac
from typing import Optional

from .errors import SignatureError


def compute_signature(channel_secret: str, body: bytes) -> str:
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(channel_secret: str, body: bytes, signature: Optional[str]) -> None:
    """Raise SignatureError unless ``signature`` matches ``body``."""
    if not channel_secret:
        raise SignatureError("Channel secret not configured")
    if not signature:
        raise SignatureError("Missing X-Line-Signature header")
    if not hmac.compare_digest(compute_signature(channel_secret, body), signature):
        raise SignatureError("Signature mismatch")
