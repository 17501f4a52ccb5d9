"""
Per-collection field validators.

Each check takes one collection (list of raw rows) and returns Diagnostics in
document order. Nothing here raises on bad data: decode failures become
Diagnostics.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from . import settings
from .helpers import (
    as_text,
    decode_attributes,
    has_empty_items,
    is_blank,
    parse_int,
    parse_number,
    row_id,
    slots_are_valid,
)
from .models import COLLECTION_ENTITIES, Diagnostic, Severity

logger = logging.getLogger(__name__)

_RANGE_IDS = {
    "PriorityLevel": "priority-range",
    "MaxLoadPerPhase": "load-range",
    "Duration": "duration-range",
    "MaxConcurrent": "concurrent-range",
}


def _entity(collection: str):
    try:
        return COLLECTION_ENTITIES[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def _id_field(collection: str) -> str:
    return settings.ID_FIELDS[collection]


def check_missing_columns(rows: List[Dict[str, Any]], collection: str) -> List[Diagnostic]:
    entity = _entity(collection)
    if not rows:
        return []
    results = []
    for col in settings.REQUIRED_COLUMNS[collection]:
        if not any(col in row for row in rows):
            results.append(Diagnostic(
                id=f"missing-{col}",
                category="missing_required_column",
                severity=Severity.ERROR,
                message=f"Missing required column: {col}",
                entity=entity,
                field=col,
                fixable=False,
            ))
    return results


def check_duplicate_ids(rows: List[Dict[str, Any]], collection: str) -> List[Diagnostic]:
    entity = _entity(collection)
    id_field = _id_field(collection)
    ids = [row_id(row, id_field) for row in rows]
    counts = Counter(i for i in ids if i)

    results = []
    reported = set()
    for value in ids:
        if not value or counts[value] < 2 or value in reported:
            continue
        reported.add(value)
        results.append(Diagnostic(
            id=f"duplicate-{value}",
            category="duplicate_id",
            severity=Severity.ERROR,
            message=f"Duplicate ID found: {value} ({counts[value]} occurrences)",
            entity=entity,
            entity_id=value,
            field=id_field,
            fixable=True,
            suggestion=f"Remove or change the duplicate ID ({value})",
        ))
    return results


def check_malformed_lists(rows: List[Dict[str, Any]], collection: str) -> List[Diagnostic]:
    entity = _entity(collection)
    id_field = _id_field(collection)
    results = []

    for index, row in enumerate(rows):
        entity_id = row_id(row, id_field)

        # Structured-text numeric array
        if collection == "workers" and not is_blank(row.get("AvailableSlots")):
            if not slots_are_valid(row.get("AvailableSlots")):
                results.append(Diagnostic(
                    id=f"malformed-slots-{index}",
                    category="malformed_list",
                    severity=Severity.ERROR,
                    message="AvailableSlots must be a JSON array of numbers",
                    entity=entity,
                    entity_id=entity_id,
                    field="AvailableSlots",
                    fixable=True,
                    suggestion="Format as JSON array, e.g., [1, 3, 5]",
                ))

        # Comma-separated lists
        for field in settings.LIST_FIELDS[collection]:
            if has_empty_items(row.get(field)):
                results.append(Diagnostic(
                    id=f"malformed-list-{field}-{index}",
                    category="malformed_list",
                    severity=Severity.WARNING,
                    message=f"Empty items in {field} list",
                    entity=entity,
                    entity_id=entity_id,
                    field=field,
                    fixable=True,
                    suggestion="Remove empty items from the list",
                ))
    return results


def _range_message(field: str, minimum: int, maximum: Optional[int]) -> str:
    if maximum is None:
        return f"{field} must be at least {minimum}"
    return f"{field} must be between {minimum} and {maximum}"


def _range_suggestion(field: str, minimum: int, maximum: Optional[int]) -> str:
    if maximum is None:
        return f"Set {field} to a value of {minimum} or greater"
    return f"Set {field} to a value between {minimum} and {maximum}"


def is_in_range(value: Any, minimum: int, maximum: Optional[int]) -> bool:
    number = parse_int(value)
    if number is None:
        return False
    if number < minimum:
        return False
    return maximum is None or number <= maximum


def check_out_of_range(rows: List[Dict[str, Any]], collection: str) -> List[Diagnostic]:
    entity = _entity(collection)
    id_field = _id_field(collection)
    bounds = [
        (field, limits)
        for (coll, field), limits in settings.RANGE_RULES.items()
        if coll == collection
    ]
    results = []

    for index, row in enumerate(rows):
        for field, (minimum, maximum) in bounds:
            value = row.get(field)
            if is_blank(value) or is_in_range(value, minimum, maximum):
                continue
            message = _range_message(field, minimum, maximum)
            if parse_number(value) is None:
                message += f" (got non-numeric value '{as_text(value).strip()}')"
            results.append(Diagnostic(
                id=f"{_RANGE_IDS[field]}-{index}",
                category="out_of_range",
                severity=Severity.ERROR,
                message=message,
                entity=entity,
                entity_id=row_id(row, id_field),
                field=field,
                fixable=True,
                suggestion=_range_suggestion(field, minimum, maximum),
            ))
    return results


def check_broken_json(rows: List[Dict[str, Any]], collection: str) -> List[Diagnostic]:
    entity = _entity(collection)
    if collection != "clients":
        return []
    results = []
    for index, row in enumerate(rows):
        value = row.get("AttributesJSON")
        if is_blank(value) or decode_attributes(value) is not None:
            continue
        results.append(Diagnostic(
            id=f"broken-json-{index}",
            category="broken_json",
            severity=Severity.ERROR,
            message="Invalid JSON in AttributesJSON",
            entity=entity,
            entity_id=row_id(row, "ClientID"),
            field="AttributesJSON",
            fixable=True,
            suggestion=f"Fix JSON syntax or use {settings.DEFAULT_ATTRIBUTES_JSON} for empty attributes",
        ))
    return results


FIELD_CHECKS = [
    check_missing_columns,
    check_duplicate_ids,
    check_malformed_lists,
    check_out_of_range,
    check_broken_json,
]


def validate_collection(rows: List[Dict[str, Any]], collection: str) -> List[Diagnostic]:
    """Run every field check over one collection, in check order."""
    results: List[Diagnostic] = []
    for check in FIELD_CHECKS:
        results.extend(check(rows, collection))
    logger.debug("Validated %d %s rows: %d diagnostics", len(rows), collection, len(results))
    return results
