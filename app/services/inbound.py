"""
Inbound WhatsApp payload normalization.

Meta posts {"entry": [{"changes": [{"value": {"messages": [...]}}]}]}. Only the first
message of the first change is processed; status receipts and other non-message
events normalize to None and are just acknowledged.
"""

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

MEDIA_TYPES = frozenset({"image", "document", "audio", "video"})
EVENT_TYPES = frozenset({"text"}) | MEDIA_TYPES


@dataclass(frozen=True)
class InboundEvent:
    user_id: str
    type: str  # text | image | document | audio | video | other
    text: str | None = None
    media_ref: str | None = None
    message_id: str | None = None


def _first(items: Any) -> dict | None:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


def extract_message(payload: dict) -> dict | None:
    """entry[0].changes[0].value.messages[0], or None when any level is missing."""
    entry = _first(payload.get("entry"))
    change = _first(entry.get("changes")) if entry else None
    value = change.get("value") if change else None
    if not isinstance(value, dict):
        return None
    return _first(value.get("messages"))


def parse_whatsapp_payload(payload: Any) -> InboundEvent | None:
    """
    Normalize a webhook payload into an InboundEvent.

    Returns:
        InboundEvent, or None for non-message events (delivery/read receipts etc.)
    """
    if not isinstance(payload, dict):
        return None

    message = extract_message(payload)
    if message is None:
        return None

    user_id = message.get("from")
    if not isinstance(user_id, str) or not user_id.strip():
        logger.warning("WhatsApp message without a sender - ignoring")
        return None

    message_type = message.get("type") or "text"
    if not isinstance(message_type, str):
        message_type = "other"
    text = None
    media_ref = None

    if message_type == "text":
        content = message.get("text")
        body = content.get("body") if isinstance(content, dict) else None
        text = body.strip() if isinstance(body, str) else ""
    elif message_type in MEDIA_TYPES:
        media = message.get(message_type)
        if isinstance(media, dict):
            media_ref = media.get("id")
            text = media.get("caption")

    return InboundEvent(
        user_id=user_id.strip(),
        type=message_type if message_type in EVENT_TYPES else "other",
        text=text,
        media_ref=media_ref,
        message_id=message.get("id"),
    )
