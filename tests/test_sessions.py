"""
Tests for the in-memory session store.
"""

import asyncio

import pytest

from app.constants.steps import Step
from app.services.conversation.sessions import InMemorySessionStore, Session


def test_get_unknown_user_returns_none():
    store = InMemorySessionStore()
    assert store.get("51999888777") is None
    assert "51999888777" not in store


def test_create_starts_at_identity_with_empty_data():
    store = InMemorySessionStore()
    session = store.create_or_reset("51999888777")

    assert session.step == Step.ASK_IDENTITY
    assert session.data.packing_urls == []
    assert session.data.client_name is None
    assert store.get("51999888777") is session
    assert len(store) == 1


def test_reset_replaces_data():
    store = InMemorySessionStore()
    session = store.create_or_reset("51999888777")
    session.step = Step.ASK_EMAIL
    session.data.client_name = "Jane Doe"
    session.data.packing_urls.append("/public/packing_1.jpeg")

    fresh = store.create_or_reset("51999888777")

    assert fresh is not session
    assert fresh.step == Step.ASK_IDENTITY
    assert fresh.data.client_name is None
    assert fresh.data.packing_urls == []
    assert len(store) == 1


def test_snapshot_is_independent():
    session = Session(user_id="51999888777")
    draft = session.snapshot()
    draft.step = Step.ASK_WEIGHT
    draft.data.packing_urls.append("/public/packing_1.jpeg")

    assert session.step == Step.ASK_IDENTITY
    assert session.data.packing_urls == []


def test_save_installs_snapshot_and_touches_updated_at():
    store = InMemorySessionStore()
    session = store.create_or_reset("51999888777")
    draft = session.snapshot()
    draft.step = Step.ASK_DESCRIPTION

    store.save(draft)

    assert store.get("51999888777") is draft
    assert draft.updated_at >= session.updated_at


@pytest.mark.asyncio
async def test_lock_is_per_user():
    store = InMemorySessionStore()
    lock_a = store.lock_for("a")
    assert store.lock_for("a") is lock_a
    assert store.lock_for("b") is not lock_a

    async with lock_a:
        # Another user's lock is still free
        assert not store.lock_for("b").locked()
        assert store.lock_for("a").locked()
    await asyncio.sleep(0)
