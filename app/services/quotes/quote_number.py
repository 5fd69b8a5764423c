"""
Quote number generator.

Format: YYYYMMDD-HHMM-<last 4 chars of the user id>, e.g. 20251015-0930-6789.
Time-ordered and readable, not globally unique: two quotes for the same user in the
same minute share a number. That is acceptable for a low-volume, human-reviewed
document trail.
"""

import re
from datetime import datetime

USER_SUFFIX_LENGTH = 4
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def generate_quote_number(user_id: str, now: datetime | None = None) -> str:
    moment = now or datetime.now()
    return f"{moment.strftime('%Y%m%d-%H%M')}-{user_id[-USER_SUFFIX_LENGTH:]}"


def quote_filename(quote_number: str) -> str:
    """PDF filename for a quote: COT_<number> with anything but [A-Za-z0-9_-] dropped."""
    return f"COT_{_UNSAFE_FILENAME_CHARS.sub('', quote_number)}.pdf"
