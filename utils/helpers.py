import re
from datetime import datetime, timezone

import bleach

_NUMBER_RE = re.compile(r"(\d+)")


def utcnow():
    """Naive UTC timestamp, the form every DateTime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clean_text(value):
    """Strip all markup from admin supplied text."""
    return bleach.clean(str(value or ""), tags=set(), strip=True).strip()


def parse_int(value):
    """Strict int coercion for JSON payload values; bools and floats are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def next_question_code(existing_codes, min_width=3):
    """
    Next external question code for a subject: highest number found in the
    existing codes plus one, zero padded to the widest existing number.
    """
    max_num = 0
    width = min_width
    for code in existing_codes:
        if not code:
            continue
        match = _NUMBER_RE.search(code)
        if not match:
            continue
        digits = match.group(1)
        max_num = max(max_num, int(digits))
        width = max(width, len(digits))
    return str(max_num + 1).zfill(width)


def validate_options(options):
    if not isinstance(options, list) or len(options) != 4:
        raise ValueError("'options' must be a list of exactly 4 answers.")
    cleaned = [clean_text(option) for option in options]
    if any(not option for option in cleaned):
        raise ValueError("Answer options cannot be empty.")
    return cleaned
