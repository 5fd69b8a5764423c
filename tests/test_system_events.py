"""
System event service and correlation-aware logging.
"""

import logging

from app.core.logging_config import CorrelationIdFilter
from app.db.models import SystemEvent
from app.middleware.correlation_id import _correlation_id_var, _pick_correlation_id, get_correlation_id
from app.services.metrics.system_event_service import error, info, log_event


def test_log_event_persists(db):
    event = info(db, "quote.sent", user_id="51999888777", payload={"number": "20251015-0930-8777"})

    assert event.id is not None
    assert event.level == "INFO"
    assert db.get(SystemEvent, event.id).payload == {"number": "20251015-0930-8777"}


def test_error_includes_exception(db):
    event = error(db, "whatsapp.send_failure", exc=ValueError("x" * 600))

    assert event.level == "ERROR"
    assert event.payload["error"]["type"] == "ValueError"
    assert len(event.payload["error"]["message"]) == 500


def test_payload_not_mutated(db):
    payload = {"a": 1}
    log_event(db, "warn", "registry.lookup_failure", payload=payload)
    assert payload == {"a": 1}


def test_correlation_id_added_when_set(db):
    token = _correlation_id_var.set("cid-789")
    try:
        event = info(db, "quote.sent")
    finally:
        _correlation_id_var.reset(token)
    assert event.payload == {"correlation_id": "cid-789"}
    assert get_correlation_id() is None


def test_pick_correlation_id():
    assert _pick_correlation_id(" abc ") == "abc"
    generated = _pick_correlation_id("x" * 500)
    assert generated != "x" * 500 and len(generated) == 36
    assert len(_pick_correlation_id(None)) == 36


def test_log_filter_adds_correlation_id():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
    CorrelationIdFilter().filter(record)
    assert record.correlation_id == "-"
