"""
WhatsApp webhook payload builders for tests.
"""

import itertools

from app.services.inbound import InboundEvent

_ids = itertools.count(1)


def whatsapp_payload(message: dict) -> dict:
    return {"entry": [{"changes": [{"value": {"messages": [message]}}]}]}


def text_payload(wa_from: str, body: str, message_id: str | None = None) -> dict:
    return whatsapp_payload(
        {
            "id": message_id or f"wamid.test{next(_ids)}",
            "from": wa_from,
            "type": "text",
            "text": {"body": body},
        }
    )


def media_payload(wa_from: str, media_type: str = "image", media_id: str = "media123", message_id: str | None = None) -> dict:
    return whatsapp_payload(
        {
            "id": message_id or f"wamid.test{next(_ids)}",
            "from": wa_from,
            "type": media_type,
            media_type: {"id": media_id, "mime_type": "image/jpeg"},
        }
    )


def text_event(user_id: str, text: str) -> InboundEvent:
    return InboundEvent(user_id=user_id, type="text", text=text, message_id=f"wamid.test{next(_ids)}")


def media_event(user_id: str, media_ref: str = "media123", media_type: str = "image") -> InboundEvent:
    return InboundEvent(user_id=user_id, type=media_type, media_ref=media_ref, message_id=f"wamid.test{next(_ids)}")
