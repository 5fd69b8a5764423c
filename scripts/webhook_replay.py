"""
Replay WhatsApp webhook payloads against a running bot.

Walks a conversation locally without a phone: each call posts one message (text or
media) signed with WHATSAPP_APP_SECRET when it is set.

Usage:
    python scripts/webhook_replay.py --text "Jane Doe\n20123456789\nAcme SAC"
    python scripts/webhook_replay.py --media image --media-id 1234567890
    python scripts/webhook_replay.py --text "price 1500" --from 51999888777
"""

import argparse
import hashlib
import hmac
import json
import sys
import uuid

import httpx

from app.core.config import settings

MEDIA_MIME_TYPES = {
    "image": "image/jpeg",
    "document": "application/pdf",
    "audio": "audio/ogg",
    "video": "video/mp4",
}


def build_message(wa_from: str, text: str | None = None, media: str | None = None, media_id: str = "media_test123") -> dict:
    """One inbound message; a fresh wamid each time so idempotency does not drop it."""
    message: dict = {
        "from": wa_from,
        "id": f"wamid.replay-{uuid.uuid4().hex[:12]}",
        "timestamp": "1760000000",
    }
    if media:
        message["type"] = media
        message[media] = {"id": media_id, "mime_type": MEDIA_MIME_TYPES[media]}
        if text:
            message[media]["caption"] = text
    else:
        message["type"] = "text"
        message["text"] = {"body": text or ""}
    return message


def build_payload(message: dict) -> dict:
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "WHATSAPP_BUSINESS_ACCOUNT_ID",
                "changes": [
                    {
                        "value": {
                            "messaging_product": "whatsapp",
                            "metadata": {
                                "display_phone_number": "15550555555",
                                "phone_number_id": settings.whatsapp_phone_number_id,
                            },
                            "contacts": [{"profile": {"name": "Replay User"}, "wa_id": message["from"]}],
                            "messages": [message],
                        },
                        "field": "messages",
                    }
                ],
            }
        ],
    }


def calculate_signature(payload_bytes: bytes) -> str | None:
    if not settings.whatsapp_app_secret:
        return None
    digest = hmac.new(settings.whatsapp_app_secret.encode("utf-8"), payload_bytes, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def send_webhook_payload(payload: dict, base_url: str) -> bool:
    webhook_url = f"{base_url.rstrip('/')}/webhooks/whatsapp"
    payload_bytes = json.dumps(payload).encode("utf-8")

    headers = {"Content-Type": "application/json"}
    signature = calculate_signature(payload_bytes)
    if signature:
        headers["X-Hub-Signature-256"] = signature

    print(f"POST {webhook_url}")
    try:
        with httpx.Client(timeout=30.0) as client:
            response = client.post(webhook_url, content=payload_bytes, headers=headers)
    except httpx.HTTPError as e:
        print(f"Request failed: {e}")
        return False

    print(f"Status: {response.status_code}")
    print(f"Body: {response.text}")
    return response.status_code == 200


def main():
    parser = argparse.ArgumentParser(description="Replay a WhatsApp webhook message")
    parser.add_argument("--text", type=str, default="Hello", help=r"Message text (use \n for new lines)")
    parser.add_argument("--media", choices=sorted(MEDIA_MIME_TYPES), help="Send a media message instead of text")
    parser.add_argument("--media-id", type=str, default="media_test123", help="WhatsApp media id")
    parser.add_argument("--from", dest="wa_from", type=str, default="51999888777", help="Sender number")
    parser.add_argument("--url", type=str, default="http://localhost:8000", help="Base URL of the API")
    args = parser.parse_args()

    text = args.text.replace("\\n", "\n")
    message = build_message(
        args.wa_from,
        text=None if args.media and args.text == "Hello" else text,
        media=args.media,
        media_id=args.media_id,
    )
    print(f"App secret: {'set' if settings.whatsapp_app_secret else 'not set (signature skipped)'}")

    if not send_webhook_payload(build_payload(message), base_url=args.url):
        print("Check that the API is running and WHATSAPP_APP_SECRET matches the server.")
        sys.exit(1)


if __name__ == "__main__":
    main()
