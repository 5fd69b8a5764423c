"""Free-text parsing for intake answers and operator commands."""

from app.services.parsing.rules import (
    DEFAULT_PERMITS,
    Addresses,
    Identity,
    ParseResult,
    is_packing_done,
    parse_addresses,
    parse_description,
    parse_email,
    parse_identity,
    parse_permits,
    parse_price_command,
    parse_service_date,
    parse_weight,
)
from app.services.parsing.text_normalization import non_empty_lines, normalize_text

__all__ = [
    "DEFAULT_PERMITS",
    "Addresses",
    "Identity",
    "ParseResult",
    "is_packing_done",
    "non_empty_lines",
    "normalize_text",
    "parse_addresses",
    "parse_description",
    "parse_email",
    "parse_identity",
    "parse_permits",
    "parse_price_command",
    "parse_service_date",
    "parse_weight",
]
