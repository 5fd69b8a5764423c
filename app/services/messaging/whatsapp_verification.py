"""
WhatsApp webhook verification.

Two checks, both against static secrets from settings:
- the GET subscribe handshake (hub.verify_token), done once at channel setup
- the X-Hub-Signature-256 HMAC of every POST body, when an app secret is configured
"""

import hashlib
import hmac
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def verify_subscription(mode: str | None, token: str | None, expected_token: str | None = None) -> bool:
    """True when Meta's subscribe handshake carries our verify token."""
    expected = expected_token if expected_token is not None else settings.whatsapp_verify_token
    if mode != "subscribe" or not token or not expected:
        return False
    return hmac.compare_digest(token, expected)


def verify_whatsapp_signature(
    payload: bytes,
    signature_header: str | None,
    app_secret: str | None = None,
) -> bool:
    """
    Verify the HMAC-SHA256 signature Meta puts in X-Hub-Signature-256 ("sha256=<hex>").

    Args:
        payload: Raw request body
        signature_header: Header value, or None when missing
        app_secret: Overrides settings.whatsapp_app_secret

    Returns:
        True if the signature is valid, or if no app secret is configured (dev mode)
    """
    secret = app_secret if app_secret is not None else settings.whatsapp_app_secret
    if not secret:
        logger.warning(
            "WhatsApp app secret not configured - skipping signature verification. "
            "Set WHATSAPP_APP_SECRET in production."
        )
        return True

    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        logger.warning("Missing or malformed X-Hub-Signature-256 header in WhatsApp webhook")
        return False

    received = signature_header[len(SIGNATURE_PREFIX):]
    computed = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()

    if not hmac.compare_digest(received, computed):
        logger.warning("Invalid WhatsApp webhook signature - request rejected")
        return False
    return True
