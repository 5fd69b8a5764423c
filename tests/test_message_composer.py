"""
Tests for message composer - YAML copy, variant selection and rendering.
"""

import pytest

import app.services.messaging.message_composer as mc
from app.services.messaging.message_composer import MessageComposer, render_message


@pytest.fixture
def copy_dir(tmp_path, monkeypatch):
    """Point the composer at a temporary copy directory."""
    copy_dir = tmp_path / "copy"
    copy_dir.mkdir()
    monkeypatch.setattr(mc, "COPY_DIR", copy_dir)
    mc.reset_cache()
    return copy_dir


def test_loads_yaml_and_renders_placeholders(copy_dir):
    (copy_dir / "en.yml").write_text('greeting: "Hi from {company_name}"\n', encoding="utf-8")
    composer = MessageComposer()
    assert composer.render("greeting", company_name="TH Logistics") == "Hi from TH Logistics"


def test_variant_selection_is_deterministic_per_user(copy_dir):
    (copy_dir / "en.yml").write_text(
        'fallback:\n  - "Variant 1"\n  - "Variant 2"\n  - "Variant 3"\n', encoding="utf-8"
    )
    composer = MessageComposer()
    first = composer._select_variant("fallback", user_id="51999888777")
    assert composer._select_variant("fallback", user_id="51999888777") == first
    assert first in {"Variant 1", "Variant 2", "Variant 3"}
    assert composer._select_variant("fallback") == "Variant 1"


def test_missing_key_is_visible(copy_dir):
    (copy_dir / "en.yml").write_text("a: b\n", encoding="utf-8")
    assert MessageComposer().render("nope") == "[MISSING: nope]"


def test_missing_placeholder_returns_template(copy_dir):
    (copy_dir / "en.yml").write_text('greeting: "Hi {name}"\n', encoding="utf-8")
    assert MessageComposer().render("greeting") == "Hi {name}"


def test_missing_copy_file_gives_empty_copy(copy_dir):
    composer = MessageComposer(locale="xx")
    assert composer.render("ask_identity") == "[MISSING: ask_identity]"


def test_shipped_copy_has_every_prompt():
    composer = MessageComposer()
    for key in (
        "welcome_caption",
        "ask_identity",
        "repair_identity",
        "ask_description",
        "repair_description",
        "ask_weight",
        "repair_weight",
        "ask_packing",
        "repair_packing",
        "packing_received",
        "ask_addresses",
        "repair_addresses",
        "ask_date",
        "repair_date",
        "ask_permits",
        "ask_email",
        "repair_email",
        "pre_quote_ready",
        "pre_quote_caption",
        "quote_updated_caption",
        "menu",
        "handover",
        "new_quote",
        "fallback",
    ):
        assert not composer.render(key).startswith("[MISSING"), key


def test_render_message_uses_shipped_copy():
    assert "TH Logistics" in render_message("welcome_caption", company_name="TH Logistics")
