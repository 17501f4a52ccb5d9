"""
Deterministic field corrections.

Every suggestion here answers a fixable Diagnostic the field validators raise
for the same row and field. Applying a suggestion is the caller's job.
"""

import logging
import math
from collections import Counter
from typing import Any, Dict, List, Optional

from . import settings
from .helpers import (
    as_text,
    decode_attributes,
    has_empty_items,
    is_blank,
    parse_number,
    row_id,
    slots_are_valid,
    split_list,
)
from .models import COLLECTION_ENTITIES, AISuggestion, SuggestionKind
from .validators import is_in_range

logger = logging.getLogger(__name__)

# field -> (action, id slug, rounding)
_RANGE_ACTIONS = {
    "PriorityLevel": ("fix_priority", "priority", round),
    "MaxLoadPerPhase": ("fix_load", "load", math.floor),
    "Duration": ("fix_duration", "duration", math.floor),
    "MaxConcurrent": ("fix_concurrent", "concurrent", math.floor),
}

_NAME_FIELDS = {
    "clients": "ClientName",
    "workers": "WorkerName",
    "tasks": "TaskName",
}


def clamp(number: float, minimum: int, maximum: Optional[int], rounding=round) -> int:
    value = max(minimum, int(rounding(number)))
    if maximum is not None:
        value = min(maximum, value)
    return value


class _Collector:
    """Accumulates suggestions for one collection."""

    def __init__(self, rows: List[Dict[str, Any]], collection: str):
        self.collection = collection
        self.entity = COLLECTION_ENTITIES[collection]
        self.id_field = settings.ID_FIELDS[collection]
        counts = Counter(row_id(row, self.id_field) for row in rows)
        self.ambiguous = {i for i, n in counts.items() if i and n > 1}
        self.suggestions: List[AISuggestion] = []

    def add(self, index: int, row: Dict[str, Any], action: str, slug: str,
            field: str, value: Any, message: str) -> None:
        entity_id = row_id(row, self.id_field)
        key = entity_id if entity_id and entity_id not in self.ambiguous else f"row{index}"
        label = as_text(row.get(_NAME_FIELDS[self.collection])).strip() or entity_id or f"row {index}"
        self.suggestions.append(AISuggestion(
            id=f"fix-{slug}-{key}",
            kind=SuggestionKind.CORRECTION,
            message=f"{message} for {label}",
            confidence=settings.CORRECTION_CONFIDENCE[action],
            action=action,
            data={
                "entity": self.entity.value,
                "entityId": entity_id,
                "field": field,
                "suggestedValue": value,
                "rowIndex": index,
            },
        ))


def _collection_corrections(rows: List[Dict[str, Any]], collection: str) -> List[AISuggestion]:
    out = _Collector(rows, collection)
    bounds = [
        (field, limits)
        for (coll, field), limits in settings.RANGE_RULES.items()
        if coll == collection
    ]

    for index, row in enumerate(rows):
        # Numeric ranges
        for field, (minimum, maximum) in bounds:
            value = row.get(field)
            if is_blank(value) or is_in_range(value, minimum, maximum):
                continue
            number = parse_number(value)
            if number is None:
                continue
            action, slug, rounding = _RANGE_ACTIONS[field]
            out.add(index, row, action, slug, field,
                    clamp(number, minimum, maximum, rounding), f"Fix {field}")

        # Structured text
        if collection == "clients":
            value = row.get("AttributesJSON")
            if not is_blank(value) and decode_attributes(value) is None:
                out.add(index, row, "fix_json", "json", "AttributesJSON",
                        settings.DEFAULT_ATTRIBUTES_JSON, "Fix JSON syntax")

        if collection == "workers":
            value = row.get("AvailableSlots")
            if not is_blank(value) and not slots_are_valid(value):
                out.add(index, row, "fix_slots", "slots", "AvailableSlots",
                        settings.DEFAULT_AVAILABLE_SLOTS, "Fix AvailableSlots format")

        # Comma lists
        for field in settings.LIST_FIELDS[collection]:
            value = row.get(field)
            if has_empty_items(value):
                out.add(index, row, "fix_list", f"list-{field}", field,
                        ",".join(split_list(value)), f"Remove empty items from {field}")

    return out.suggestions


def suggest_corrections(
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[AISuggestion]:
    suggestions = []
    suggestions.extend(_collection_corrections(clients, "clients"))
    suggestions.extend(_collection_corrections(workers, "workers"))
    suggestions.extend(_collection_corrections(tasks, "tasks"))
    logger.debug("Suggested %d corrections", len(suggestions))
    return suggestions
