"""
Event type constants for SystemEvent.

Use these instead of string literals to ensure consistency.
"""

# ---- WhatsApp ----
EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE = "whatsapp.signature_verification_failure"
EVENT_WHATSAPP_WEBHOOK_FAILURE = "whatsapp.webhook_failure"
EVENT_WHATSAPP_SEND_FAILURE = "whatsapp.send_failure"

# ---- Quotes ----
EVENT_QUOTE_RENDER_FAILURE = "quote.render_failure"
