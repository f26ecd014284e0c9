from __future__ import annotations

import re
from typing import Any, Iterable

# Keys that may legitimately repeat in a query string (?duration=5&duration=9).
# Any other repeated key keeps only its last value.
DEFAULT_WHITELIST = frozenset(
    {"duration", "ratings_quantity", "ratings_average", "max_group_size", "difficulty", "price"}
)

_BRACKET_KEY_RE = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


def _split_key(raw_key: str) -> tuple[str, str | None]:
    match = _BRACKET_KEY_RE.match(raw_key)
    if match is None:
        return raw_key, None
    return match.group(1), match.group(2)


def parse_query_string(items: Iterable[tuple[str, str]], whitelist: Iterable[str] = DEFAULT_WHITELIST) -> dict[str, Any]:
    """
    Build the nested query mapping from ``(key, value)`` pairs.

    ``price[gte]=500`` becomes ``{"price": {"gte": "500"}}``; a whitelisted key
    that repeats becomes a list of values.
    """
    allowed = set(whitelist)
    parsed: dict[str, Any] = {}
    for raw_key, value in items:
        key, sub_key = _split_key(str(raw_key))
        if sub_key is not None:
            current = parsed.get(key)
            if not isinstance(current, dict):
                current = {}
                parsed[key] = current
            current[sub_key] = value
            continue
        if key in parsed and key in allowed and not isinstance(parsed[key], dict):
            previous = parsed[key]
            parsed[key] = (previous if isinstance(previous, list) else [previous]) + [value]
            continue
        parsed[key] = value
    return parsed
