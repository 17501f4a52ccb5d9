"""
Map user-supplied column headers onto the canonical record columns.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from . import settings
from .models import HeaderMapping

logger = logging.getLogger(__name__)

REPORT_THRESHOLD = 0.3
APPLY_THRESHOLD = 0.5
VARIATION_SCORE = 0.9

# Common alternative spellings, compared after normalisation
VARIATIONS = {
    "ClientID": ["client_id", "id", "client"],
    "ClientName": ["client_name", "name"],
    "PriorityLevel": ["priority_level", "priority", "level"],
    "RequestedTaskIDs": ["requested_task_ids", "tasks", "taskids"],
    "GroupTag": ["group_tag", "group", "tag"],
    "AttributesJSON": ["attributes_json", "attributes", "json"],
    "WorkerID": ["worker_id", "id", "worker"],
    "WorkerName": ["worker_name", "name"],
    "Skills": ["skill", "capabilities"],
    "AvailableSlots": ["available_slots", "slots", "availability"],
    "MaxLoadPerPhase": ["max_load_per_phase", "maxload", "load"],
    "WorkerGroup": ["worker_group", "group"],
    "QualificationLevel": ["qualification_level", "qualification", "level"],
    "TaskID": ["task_id", "id", "task"],
    "TaskName": ["task_name", "name"],
    "Category": ["cat", "type"],
    "Duration": ["time", "length"],
    "RequiredSkills": ["required_skills", "skills", "requirements"],
    "PreferredPhases": ["preferred_phases", "phases", "preference"],
    "MaxConcurrent": ["max_concurrent", "concurrent", "parallel"],
}

# Header keywords -> collection, checked in order
_COLLECTION_HINTS = [
    ("clients", ("client", "priority")),
    ("workers", ("worker", "skill")),
    ("tasks", ("task", "duration")),
]


def normalize(header: Any) -> str:
    return re.sub(r"[^a-z0-9]", "", str(header).lower())


def _score(source: str, canonical: str) -> float:
    target = normalize(canonical)
    if not source or not target:
        return 0.0
    if source == target:
        return 1.0
    score = 0.0
    if source in target or target in source:
        score = min(len(source), len(target)) / max(len(source), len(target))
    if source in {normalize(v) for v in VARIATIONS.get(canonical, [])}:
        score = max(score, VARIATION_SCORE)
    return score


def _best_match(header: Any, collection: str) -> Tuple[Optional[str], float]:
    source = normalize(header)
    best, best_score = None, 0.0
    for canonical in settings.REQUIRED_COLUMNS[collection]:
        score = _score(source, canonical)
        if score > best_score:
            best, best_score = canonical, score
            if score == 1.0:
                break
    return best, best_score


def _columns(collection: str) -> List[str]:
    try:
        return settings.REQUIRED_COLUMNS[collection]
    except KeyError:
        raise ValueError(f"Unknown collection: {collection}") from None


def map_headers(headers: List[Any], collection: str) -> List[HeaderMapping]:
    """
    Score every source header against the canonical columns of a collection.

    Exact (normalised) matches score 1.0, known variations 0.9, and containment
    of one name in the other scores by length ratio. Only mappings above 0.3
    are reported.
    """
    _columns(collection)
    mappings = []
    for header in headers:
        mapped, score = _best_match(header, collection)
        if mapped is not None and score > REPORT_THRESHOLD:
            mappings.append(HeaderMapping(
                original_header=str(header),
                mapped_header=mapped,
                confidence=round(score, 4),
            ))
    return mappings


def _applied(headers: List[Any], collection: str) -> Dict[str, str]:
    """source header -> canonical column, highest confidence wins per column."""
    chosen: Dict[str, HeaderMapping] = {}
    for mapping in map_headers(headers, collection):
        if mapping.confidence <= APPLY_THRESHOLD:
            continue
        current = chosen.get(mapping.mapped_header)
        if current is None or mapping.confidence > current.confidence:
            chosen[mapping.mapped_header] = mapping
    return {m.original_header: canonical for canonical, m in chosen.items()}


def map_frame(df: pd.DataFrame, collection: str) -> Tuple[pd.DataFrame, List[HeaderMapping]]:
    """
    Rename a frame's columns to the canonical ones; missing columns are filled with "".

    Returns:
        (frame with exactly the canonical columns, mapping report)
    """
    columns = _columns(collection)
    report = map_headers(list(df.columns), collection)
    rename = _applied(list(df.columns), collection)
    df = df[list(rename)].rename(columns=rename).copy()
    for col in columns:
        if col not in df.columns:
            df[col] = ""
    logger.debug("Mapped %s headers: %s", collection, rename)
    return df[columns], report


def detect_collection(headers: List[Any]) -> Optional[str]:
    """
    Guess which collection a file holds from its header text.

    Each collection scores the number of headers containing one of its
    keywords; the highest score wins, earlier collections on a tie.
    """
    names = [str(h).lower() for h in headers]
    best, best_hits = None, 0
    for collection, hints in _COLLECTION_HINTS:
        hits = sum(1 for name in names if any(hint in name for hint in hints))
        if hits > best_hits:
            best, best_hits = collection, hits
    return best

