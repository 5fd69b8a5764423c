"""
Provider constants for ProcessedMessage and idempotency.
"""

PROVIDER_WHATSAPP = "whatsapp"
