"""Identifier generation for reports, sections, and items."""

from __future__ import annotations

import random
import re
import string
import uuid

SHORT_ID_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
SHORT_ID_LENGTH = 9

_REPORT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def _pseudo_random_uuid() -> str:
    # Same textual shape as uuid4, weaker uniqueness.
    def nibble(char: str) -> str:
        value = random.randint(0, 15)
        if char == "y":
            value = (value & 0x3) | 0x8
        return format(value, "x")

    return re.sub(r"[xy]", lambda m: nibble(m.group(0)), "xxxxxxxx-xxxx-4xxx-yxxx-xxxxxxxxxxxx")


def new_report_id() -> str:
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return _pseudo_random_uuid()


def new_short_id(length: int = SHORT_ID_LENGTH) -> str:
    return "".join(random.choice(SHORT_ID_ALPHABET) for _ in range(length))


def is_report_id(value: str) -> bool:
    """True when value has the canonical 8-4-4-4-12 hex shape of a primary key."""
    return bool(_REPORT_ID_PATTERN.match(value))


def new_entity_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"
