"""
Keyword search over the loaded records.

A handful of query shapes get field-aware handling (durations, phases,
priorities, skills); everything else is a case-insensitive substring match
over the record's JSON text.
"""

import json
import re
from typing import Any, Dict, List, Optional

from .helpers import as_text, parse_number, split_list

DURATION_MORE_THAN = re.compile(r"duration.*more than\s+(\d{1,9})\b|more than\s+(\d{1,9})\b.*duration")
PHASE_QUERY = re.compile(r"\bphase\s+(\d{1,9})\b")
PRIORITY_QUERY = re.compile(r"\bpriority(?:\s+level)?\s+(\d{1,9})\b")
SKILL_QUERY = re.compile(r"\bskills?\s+(?:in\s+|of\s+|with\s+|like\s+)?([a-z0-9+#._-]+)")
PHASE_TOKEN = re.compile(r"\b(\d{1,9})\s*-\s*(\d{1,9})\b|\b(\d{1,9})\b")


def _names_phase(value: Any, phase: int) -> bool:
    """True if a PreferredPhases value ("1,3", "[2,4]" or "1-3") includes the phase."""
    for start, end, single in PHASE_TOKEN.findall(as_text(value)):
        if single:
            if int(single) == phase:
                return True
        elif int(start) <= phase <= int(end):
            return True
    return False


def _special_match(row: Dict[str, Any], query: str) -> Optional[bool]:
    """Field-aware answer for the query, or None to fall back to text search."""
    match = DURATION_MORE_THAN.search(query)
    if match:
        duration = parse_number(row.get("Duration"))
        if duration is not None:
            return duration > int(match.group(1) or match.group(2))

    match = PHASE_QUERY.search(query)
    if match and as_text(row.get("PreferredPhases")).strip():
        if _names_phase(row.get("PreferredPhases"), int(match.group(1))):
            return True

    match = PRIORITY_QUERY.search(query)
    if match:
        priority = parse_number(row.get("PriorityLevel"))
        if priority is not None:
            return priority == int(match.group(1))

    match = SKILL_QUERY.search(query)
    if match:
        skills = split_list(row.get("Skills")) + split_list(row.get("RequiredSkills"))
        if skills and match.group(1) in {s.lower() for s in skills}:
            return True

    return None


def matches_query(row: Dict[str, Any], query: str) -> bool:
    query = query.strip().lower()
    if not query:
        return False
    special = _special_match(row, query)
    if special is not None:
        return special
    return query in json.dumps(row, default=str).lower()


def search_records(
    query: str,
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> Dict[str, List[Dict[str, Any]]]:
    return {
        "clients": [dict(row) for row in clients if matches_query(row, query)],
        "workers": [dict(row) for row in workers if matches_query(row, query)],
        "tasks": [dict(row) for row in tasks if matches_query(row, query)],
    }
