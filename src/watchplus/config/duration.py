"""Duration literals such as "500ms", "30s", "5m", "2h"."""

from __future__ import annotations

import re

from watchplus.exceptions import InvalidDurationError

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|s|m|h)?", re.IGNORECASE)

_UNIT_TO_MS: dict[str, float] = {
    "ms": 1.0,
    "s": 1000.0,
    "m": 60.0 * 1000.0,
    "h": 60.0 * 60.0 * 1000.0,
}


def parse_duration(text: str) -> int:
    """Parse a duration literal into milliseconds.

    The unit is optional and defaults to seconds; units are case-insensitive.
    Fractional milliseconds are truncated.

    Raises:
        InvalidDurationError: If the literal is empty, negative or malformed.
    """
    match = _DURATION_RE.fullmatch(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise InvalidDurationError(str(text))
    value = float(match.group(1))
    unit = (match.group(2) or "s").lower()
    return int(value * _UNIT_TO_MS[unit])
