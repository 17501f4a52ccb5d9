"""
Field-level helpers shared by the validators, analyzer and recommender.
"""

import json
import math
from typing import Any, Dict, List, Optional


def as_text(value: Any) -> str:
    """Row values normally arrive as strings; anything else is stringified."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return value if isinstance(value, str) else str(value)


def is_blank(value: Any) -> bool:
    return as_text(value).strip() == ""


def split_list(value: Any) -> List[str]:
    """
    Split a comma-separated field into trimmed, non-empty items.

    Args:
        value: Comma-separated string

    Returns:
        List of trimmed values, blanks dropped
    """
    text = as_text(value)
    if not text.strip():
        return []
    return [item.strip() for item in text.split(",") if item.strip()]


def has_empty_items(value: Any) -> bool:
    text = as_text(value)
    if not text.strip():
        return False
    return any(not item.strip() for item in text.split(","))


def unique(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def decode_json(value: Any) -> Any:
    """
    Decode a structured-text field.

    Raises ValueError when it is not JSON (NaN and Infinity included) and
    RecursionError when it nests too deeply to decode.
    """
    if isinstance(value, (dict, list)):
        return value
    return json.loads(as_text(value), parse_constant=_reject_constant)


def decode_attributes(value: Any) -> Optional[Dict[str, Any]]:
    """Return the attribute map, or None when the text is not a JSON object."""
    try:
        decoded = decode_json(value)
    except (ValueError, RecursionError):
        return None
    return decoded if isinstance(decoded, dict) else None


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


def decode_slots(value: Any) -> Optional[List[Any]]:
    """Return the decoded slot array, or None when the text is not a JSON array."""
    try:
        decoded = decode_json(value)
    except (ValueError, RecursionError):
        return None
    return decoded if isinstance(decoded, list) else None


def slots_are_valid(value: Any) -> bool:
    slots = decode_slots(value)
    return slots is not None and all(_is_number(slot) for slot in slots)


def slot_count(value: Any) -> int:
    """Length of the decoded slot array; 0 when the field does not decode."""
    slots = decode_slots(value)
    return len(slots) if slots is not None else 0


def parse_number(value: Any) -> Optional[float]:
    """Parse a numeric field; None for blanks and non-numeric text."""
    if _is_number(value):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        text = as_text(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int(value: Any) -> Optional[int]:
    """Parse an integral field ("3" or "3.0"); None when not a whole number."""
    number = parse_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def row_id(row: Dict[str, Any], id_field: str) -> Optional[str]:
    """The row's identifier, or None when blank (never fabricated)."""
    value = as_text(row.get(id_field)).strip()
    return value or None
