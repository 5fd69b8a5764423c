import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants.event_types import (
    EVENT_QUOTE_RENDER_FAILURE,
    EVENT_WHATSAPP_SEND_FAILURE,
    EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE,
    EVENT_WHATSAPP_WEBHOOK_FAILURE,
)
from app.constants.providers import PROVIDER_WHATSAPP
from app.db.deps import get_db
from app.db.models import ProcessedMessage
from app.middleware.correlation_id import get_correlation_id
from app.services.bot import QuoteBot, get_bot
from app.services.capabilities import ChannelError, RenderError
from app.services.inbound import InboundEvent, parse_whatsapp_payload
from app.services.messaging.whatsapp_verification import (
    verify_subscription,
    verify_whatsapp_signature,
)
from app.services.metrics.system_event_service import error, warn

logger = logging.getLogger(__name__)

router = APIRouter()


def _wa_error_response(status_code: int, error: str, **content_extras) -> JSONResponse:
    """Build JSONResponse for WhatsApp webhook errors: {"received": False, "error": ...}."""
    content: dict = {"received": False, "error": error, **content_extras}
    return JSONResponse(status_code=status_code, content=content)


async def _verify_whatsapp_webhook(
    request: Request, db: Session
) -> tuple[bytes | None, JSONResponse | None]:
    """
    Read raw body, verify WhatsApp webhook signature.
    Returns (raw_body, None) on success; (None, error_response) on failure.
    """
    raw_body = await request.body()
    signature_header = request.headers.get("X-Hub-Signature-256")
    if not verify_whatsapp_signature(raw_body, signature_header):
        logger.warning("WhatsApp webhook signature verification failed - rejecting request")
        warn(
            db=db,
            event_type=EVENT_WHATSAPP_SIGNATURE_VERIFICATION_FAILURE,
            payload={"has_signature_header": signature_header is not None},
        )
        return None, _wa_error_response(403, "Invalid webhook signature")
    return raw_body, None


def _claim_message(db: Session, event: InboundEvent) -> bool:
    """
    Record the WhatsApp message id before processing.

    Returns:
        False if this id was already processed (Meta redelivery), True otherwise
    """
    if not event.message_id:
        return True
    db.add(
        ProcessedMessage(
            provider=PROVIDER_WHATSAPP,
            message_id=event.message_id,
            user_id=event.user_id,
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


@router.get("/whatsapp")
def whatsapp_verify(
    hub_mode: str | None = Query(None, alias="hub.mode"),
    hub_verify_token: str | None = Query(None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(None, alias="hub.challenge"),
):
    if verify_subscription(hub_mode, hub_verify_token):
        logger.info("WhatsApp webhook subscription verified")
        return Response(content=hub_challenge or "", media_type="text/plain")
    raise HTTPException(status_code=403, detail="Verification failed")


@router.post("/whatsapp")
async def whatsapp_inbound(
    request: Request,
    db: Session = Depends(get_db),
    bot: QuoteBot = Depends(get_bot),
):
    logger.info(
        "whatsapp.inbound_received",
        extra={"event_type": "whatsapp.inbound_received"},
    )

    raw_body, err_response = await _verify_whatsapp_webhook(request, db)
    if err_response is not None:
        return err_response

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except ValueError as e:
        logger.warning(f"Invalid JSON payload in WhatsApp webhook: {e}")
        return _wa_error_response(400, "Invalid JSON payload")

    event = parse_whatsapp_payload(payload)
    if event is None:
        # Delivery/read receipts and other non-message notifications
        return {"received": True, "type": "non-message-event"}

    if not _claim_message(db, event):
        logger.info(f"Duplicate WhatsApp message {event.message_id} from {event.user_id} - skipping")
        return {"received": True, "type": "duplicate", "message_id": event.message_id}

    try:
        session = await bot.handle(event)
    except (ChannelError, RenderError) as e:
        # Not retried. Meta still gets a 200 so it does not redeliver.
        event_type = EVENT_QUOTE_RENDER_FAILURE if isinstance(e, RenderError) else EVENT_WHATSAPP_SEND_FAILURE
        logger.error(
            f"Outbound delivery failed - user_id={event.user_id}, message_id={event.message_id}, "
            f"error_type={type(e).__name__}: {e}",
            exc_info=True,
        )
        error(
            db=db,
            event_type=event_type,
            user_id=event.user_id,
            payload={"message_id": event.message_id, "message_type": event.type},
            exc=e,
        )
        return {
            "received": True,
            "user_id": event.user_id,
            "message_type": event.type,
            "error": "Delivery failed",
        }
    except Exception as e:
        logger.error(
            f"Conversation handling failed for WhatsApp webhook - "
            f"user_id={event.user_id}, message_id={event.message_id}, "
            f"correlation_id={get_correlation_id()}, error_type={type(e).__name__}: {e}",
            exc_info=True,
        )
        error(
            db=db,
            event_type=EVENT_WHATSAPP_WEBHOOK_FAILURE,
            user_id=event.user_id,
            payload={"message_id": event.message_id, "message_type": event.type},
            exc=e,
        )
        return {
            "received": True,
            "user_id": event.user_id,
            "message_type": event.type,
            "error": "Conversation handling failed",
        }

    return {
        "received": True,
        "user_id": event.user_id,
        "message_type": event.type,
        "step": session.step.value,
    }
