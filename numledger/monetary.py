"""Arbitrary-precision monetary amounts."""

from __future__ import annotations

import re

MonetaryInt = int

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def parse_monetary_int(s: str) -> int:
    """Parse a base-10 integer amount; raise ValueError when it is malformed."""
    if not isinstance(s, str) or _DECIMAL.fullmatch(s) is None:
        raise ValueError("invalid monetary int")
    return int(s)


def or_zero(value: int | None) -> int:
    """Return the amount, or zero when it is missing."""
    return 0 if value is None else value