"""
WhatsApp webhook endpoints: verification handshake, signature, idempotency, dispatch.
"""

import hashlib
import hmac
import json

from sqlalchemy import select

from app.core.config import settings
from app.db.models import ProcessedMessage, SystemEvent
from tests.helpers.payloads import media_payload, text_payload, whatsapp_payload

USER = "51999888777"


def test_verify_handshake_returns_challenge(client):
    response = client.get(
        "/webhooks/whatsapp",
        params={"hub.mode": "subscribe", "hub.verify_token": settings.whatsapp_verify_token, "hub.challenge": "12345"},
    )
    assert response.status_code == 200
    assert response.text == "12345"


def test_verify_handshake_rejects_wrong_token(client):
    response = client.get(
        "/webhooks/whatsapp",
        params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "12345"},
    )
    assert response.status_code == 403


def test_verify_handshake_rejects_wrong_mode(client):
    response = client.get(
        "/webhooks/whatsapp",
        params={"hub.mode": "unsubscribe", "hub.verify_token": settings.whatsapp_verify_token},
    )
    assert response.status_code == 403


def test_first_message_creates_session(client, channel, store):
    response = client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"))

    assert response.status_code == 200
    assert response.json() == {"received": True, "user_id": USER, "message_type": "text", "step": "ask_identity"}
    assert store.get(USER) is not None
    assert [m["kind"] for m in channel.sent] == ["image", "text"]


def test_identity_message_advances(client, store):
    client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"))

    response = client.post("/webhooks/whatsapp", json=text_payload(USER, "Jane Doe\n20123456789\nAcme SAC"))

    assert response.json()["step"] == "ask_description"
    assert store.get(USER).data.client_tax_id == "20123456789"


def test_image_message_dispatched_as_media(client, channel):
    client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"))

    response = client.post("/webhooks/whatsapp", json=media_payload(USER, media_id="media999"))

    assert response.json()["message_type"] == "image"
    assert channel.downloads == ["media999"]


def test_status_receipt_is_acknowledged(client, channel):
    payload = {"entry": [{"changes": [{"value": {"statuses": [{"id": "wamid.x", "status": "read"}]}}]}]}

    response = client.post("/webhooks/whatsapp", json=payload)

    assert response.status_code == 200
    assert response.json() == {"received": True, "type": "non-message-event"}
    assert channel.sent == []


def test_malformed_text_field_is_acknowledged(client, store):
    client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"))
    payload = whatsapp_payload({"id": "wamid.bad1", "from": USER, "type": "text", "text": "hi"})

    response = client.post("/webhooks/whatsapp", json=payload)

    assert response.status_code == 200
    assert response.json()["step"] == "ask_identity"


def test_invalid_json_is_400(client):
    response = client.post(
        "/webhooks/whatsapp", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json()["received"] is False


def test_duplicate_message_processed_once(client, channel, db):
    payload = text_payload(USER, "hi", message_id="wamid.dup1")

    first = client.post("/webhooks/whatsapp", json=payload)
    second = client.post("/webhooks/whatsapp", json=payload)

    assert first.json()["step"] == "ask_identity"
    assert second.json() == {"received": True, "type": "duplicate", "message_id": "wamid.dup1"}
    assert len(channel.sent) == 2  # welcome image + prompt, once
    rows = db.execute(select(ProcessedMessage).where(ProcessedMessage.message_id == "wamid.dup1")).scalars().all()
    assert len(rows) == 1
    assert rows[0].user_id == USER


def test_delivery_failure_still_acknowledged_and_recorded(client, channel, db):
    channel.fail_on = {"image"}

    response = client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"))

    assert response.status_code == 200
    body = response.json()
    assert body["received"] is True
    assert body["error"] == "Delivery failed"

    event = db.execute(select(SystemEvent)).scalars().one()
    assert event.level == "ERROR"
    assert event.event_type == "whatsapp.send_failure"
    assert event.user_id == USER
    assert event.payload["error"]["type"] == "ChannelError"


def test_render_failure_recorded(client, renderer, db):
    renderer.fail = True
    client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"))

    response = client.post("/webhooks/whatsapp", json=text_payload(USER, "price 1500"))

    assert response.status_code == 200
    event = db.execute(select(SystemEvent)).scalars().one()
    assert event.event_type == "quote.render_failure"


def test_signature_checked_when_secret_set(client, db, monkeypatch):
    monkeypatch.setattr(settings, "whatsapp_app_secret", "s3cret")
    body = json.dumps(text_payload(USER, "hi")).encode("utf-8")

    rejected = client.post(
        "/webhooks/whatsapp",
        content=body,
        headers={"Content-Type": "application/json", "X-Hub-Signature-256": "sha256=deadbeef"},
    )
    assert rejected.status_code == 403
    event = db.execute(select(SystemEvent)).scalars().one()
    assert event.event_type == "whatsapp.signature_verification_failure"

    signature = "sha256=" + hmac.new(b"s3cret", body, hashlib.sha256).hexdigest()
    accepted = client.post(
        "/webhooks/whatsapp",
        content=body,
        headers={"Content-Type": "application/json", "X-Hub-Signature-256": signature},
    )
    assert accepted.status_code == 200
    assert accepted.json()["step"] == "ask_identity"


def test_correlation_id_echoed(client):
    response = client.post(
        "/webhooks/whatsapp", json=text_payload(USER, "hi"), headers={"X-Correlation-ID": "cid-123"}
    )
    assert response.headers["X-Correlation-ID"] == "cid-123"


def test_correlation_id_stored_on_system_event(client, channel, db):
    channel.fail_on = {"image"}

    client.post("/webhooks/whatsapp", json=text_payload(USER, "hi"), headers={"X-Correlation-ID": "cid-456"})

    event = db.execute(select(SystemEvent)).scalars().one()
    assert event.payload["correlation_id"] == "cid-456"
