# Messaging: WhatsApp channel, webhook verification, bot copy

from app.services.messaging.message_composer import get_composer, render_message
from app.services.messaging.whatsapp import WhatsAppChannel
from app.services.messaging.whatsapp_verification import (
    verify_subscription,
    verify_whatsapp_signature,
)

__all__ = [
    "WhatsAppChannel",
    "get_composer",
    "render_message",
    "verify_subscription",
    "verify_whatsapp_signature",
]
