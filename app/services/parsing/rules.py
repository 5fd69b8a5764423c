"""
Declarative parse rules for free-text intake answers.

Every rule returns a ParseResult instead of raising: `ok` with the parsed value, or
`ok=False` with a short error code the conversation engine turns into a re-prompt.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Generic, TypeVar

from app.services.parsing.text_normalization import non_empty_lines, normalize_text

T = TypeVar("T")

TAX_ID_PATTERN = re.compile(r"(?<!\d)(\d{11})(?!\d)")
WEIGHT_PATTERN = re.compile(r"^(\d+(?:[.,]\d+)?)(?:\s*(?:kg|kgs|kilos?)\.?)?$", re.IGNORECASE)
ADDRESS_SEPARATOR = re.compile(r"\n|->|\u2192")
PICKUP_LABEL = re.compile(r"^\s*pickup\s*:\s*", re.IGNORECASE)
DROPOFF_LABEL = re.compile(r"^\s*drop-?off\s*:\s*", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PRICE_COMMAND = re.compile(r"price\s+(\d+(?:[.,]\d+)?)", re.IGNORECASE)

# Accepted service date formats, most specific first
DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y")

DEFAULT_PERMITS = "not specified"


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class Identity:
    name: str
    tax_id: str
    legal_name: str | None


@dataclass(frozen=True)
class Addresses:
    pickup: str
    dropoff: str


def parse_identity(text: str | None) -> ParseResult[Identity]:
    """
    Parse the identity block: name on line 1, tax id (11 digits) anywhere,
    legal name on line 3 (falling back to line 2).
    """
    lines = non_empty_lines(text)
    if not lines:
        return ParseResult.failure("empty")

    match = TAX_ID_PATTERN.search(" | ".join(lines))
    if not match:
        return ParseResult.failure("missing_tax_id")

    if len(lines) > 2:
        legal_name = lines[2]
    elif len(lines) > 1:
        legal_name = lines[1]
    else:
        legal_name = None
    return ParseResult.success(Identity(name=lines[0], tax_id=match.group(1), legal_name=legal_name))


def parse_description(text: str | None) -> ParseResult[str]:
    description = normalize_text(text)
    if not description:
        return ParseResult.failure("empty")
    return ParseResult.success(description)


def parse_weight(text: str | None) -> ParseResult[float]:
    """Weight in kg; comma or dot decimals, optional 'kg' suffix, must be > 0."""
    match = WEIGHT_PATTERN.match(normalize_text(text))
    if not match:
        return ParseResult.failure("not_a_number")
    weight = float(match.group(1).replace(",", "."))
    if not math.isfinite(weight) or weight <= 0:
        return ParseResult.failure("not_positive")
    return ParseResult.success(weight)


def is_packing_done(text: str | None) -> bool:
    return normalize_text(text).lower() == "ok"


def parse_addresses(text: str | None) -> ParseResult[Addresses]:
    """Pickup and dropoff, one per line or separated by an arrow."""
    parts = [part.strip() for part in ADDRESS_SEPARATOR.split(normalize_text(text))]
    parts = [part for part in parts if part]
    if len(parts) < 2:
        return ParseResult.failure("need_two_addresses")

    pickup = PICKUP_LABEL.sub("", parts[0]).strip()
    dropoff = DROPOFF_LABEL.sub("", parts[1]).strip()
    if not pickup or not dropoff:
        return ParseResult.failure("need_two_addresses")
    return ParseResult.success(Addresses(pickup=pickup, dropoff=dropoff))


def parse_service_date(text: str | None) -> ParseResult[str]:
    """A real calendar date, returned as YYYY-MM-DD."""
    raw = normalize_text(text)
    for fmt in DATE_FORMATS:
        try:
            return ParseResult.success(datetime.strptime(raw, fmt).date().isoformat())
        except ValueError:
            continue
    return ParseResult.failure("invalid_date")


def parse_permits(text: str | None) -> str:
    return normalize_text(text) or DEFAULT_PERMITS


def parse_email(text: str | None) -> ParseResult[str]:
    email = normalize_text(text)
    if not EMAIL_PATTERN.fullmatch(email):
        return ParseResult.failure("invalid_email")
    return ParseResult.success(email)


def parse_price_command(text: str | None) -> ParseResult[Decimal]:
    """Operator override: 'price 1500' or 'price 1500,50' (whole message)."""
    match = PRICE_COMMAND.fullmatch(normalize_text(text))
    if not match:
        return ParseResult.failure("not_a_price_command")
    try:
        return ParseResult.success(Decimal(match.group(1).replace(",", ".")))
    except InvalidOperation:
        return ParseResult.failure("not_a_price_command")
