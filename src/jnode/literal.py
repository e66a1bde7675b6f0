"""Best-effort literal parsing for edited field text."""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class Parsed:
    """Text that parsed as a JSON literal."""

    value: object


@dataclass(frozen=True)
class Fallback:
    """Text kept verbatim because it is not a JSON literal."""

    text: str


def _reject_constant(name: str) -> object:
    # json.loads accepts NaN/Infinity, which are not JSON.
    raise ValueError(f"non-standard constant {name}")


def parse_literal(text: str) -> Parsed | Fallback:
    """Parse text as a JSON literal. Never raises."""
    try:
        return Parsed(json.loads(text, parse_constant=_reject_constant))
    except (json.JSONDecodeError, ValueError, TypeError, RecursionError):
        return Fallback(text)


def coerce(text: str) -> object:
    """Return the parsed literal, or the raw text when it does not parse."""
    result = parse_literal(text)
    if isinstance(result, Parsed):
        return result.value
    return result.text
