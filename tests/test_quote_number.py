"""
Tests for quote numbers and quote PDF filenames.
"""

from datetime import datetime, timedelta

from freezegun import freeze_time

from app.services.quotes.quote_number import generate_quote_number, quote_filename


def test_quote_number_format():
    number = generate_quote_number("51999888777", now=datetime(2025, 10, 15, 9, 30))
    assert number == "20251015-0930-8777"


def test_quote_number_uses_current_time():
    with freeze_time("2026-01-20 14:05:59"):
        assert generate_quote_number("51999888777") == "20260120-1405-8777"


def test_same_minute_same_user_collides():
    with freeze_time("2026-01-20 14:05:01") as frozen:
        first = generate_quote_number("51999888777")
        frozen.tick(timedelta(seconds=30))
        second = generate_quote_number("51999888777")
    assert first == second


def test_next_minute_gives_distinct_number():
    with freeze_time("2026-01-20 14:05:30") as frozen:
        first = generate_quote_number("51999888777")
        frozen.tick(timedelta(seconds=60))
        second = generate_quote_number("51999888777")
    assert first != second
    assert first < second


def test_short_user_id_uses_whole_id():
    assert generate_quote_number("42", now=datetime(2025, 1, 2, 3, 4)) == "20250102-0304-42"


def test_quote_filename_strips_unsafe_characters():
    assert quote_filename("20251015-0930-8777") == "COT_20251015-0930-8777.pdf"
    assert quote_filename("2025/10 15:x") == "COT_20251015x.pdf"
