"""
Pattern-based rule recommendations.

Scans a batch for recurring structure and proposes BusinessRule candidates as
AISuggestion objects (kind=rule). Inputs are never modified.
"""

import logging
import math
from typing import Any, Dict, List, Tuple

from . import settings
from .helpers import as_text, parse_number, slot_count, split_list, unique
from .models import AISuggestion, BusinessRule, RuleType, SuggestionKind

logger = logging.getLogger(__name__)


def _co_run_suggestions(clients: List[Dict[str, Any]]) -> List[AISuggestion]:
    # Pair tallies keep first-encounter order
    pair_counts: Dict[Tuple[str, str], int] = {}
    for client in clients:
        task_ids = unique(split_list(client.get("RequestedTaskIDs")))
        for i in range(len(task_ids)):
            for j in range(i + 1, len(task_ids)):
                pair = tuple(sorted((task_ids[i], task_ids[j])))
                pair_counts[pair] = pair_counts.get(pair, 0) + 1

    suggestions = []
    for (task1, task2), count in pair_counts.items():
        if count < settings.CO_RUN_MIN_OCCURRENCES:
            continue
        suggestions.append(AISuggestion(
            id=f"co-run-rec-{task1}-{task2}",
            kind=SuggestionKind.RULE,
            message=(
                f"Tasks {task1} and {task2} are frequently requested together "
                f"({count} clients). Consider adding a co-run rule."
            ),
            confidence=settings.CO_RUN_CONFIDENCE,
            action="add_co_run_rule",
            data={"tasks": [task1, task2]},
        ))
    return suggestions


def _group_load_suggestions(workers: List[Dict[str, Any]]) -> List[AISuggestion]:
    group_loads: Dict[str, Dict[str, float]] = {}
    for worker in workers:
        group = as_text(worker.get("WorkerGroup")).strip()
        if not group:
            continue
        current = group_loads.setdefault(group, {"total_slots": 0, "max_load": 0})
        current["total_slots"] += slot_count(worker.get("AvailableSlots"))
        current["max_load"] += parse_number(worker.get("MaxLoadPerPhase")) or 0

    suggestions = []
    for group, load in group_loads.items():
        if load["max_load"] <= load["total_slots"] * settings.GROUP_OVERLOAD_FACTOR:
            continue
        suggested_limit = math.floor(load["total_slots"] * settings.GROUP_LOAD_LIMIT_FACTOR)
        suggestions.append(AISuggestion(
            id=f"load-limit-rec-{group}",
            kind=SuggestionKind.RULE,
            message=f"{group} workers are overloaded. Consider adding a load limit rule.",
            confidence=settings.GROUP_OVERLOAD_CONFIDENCE,
            action="add_load_limit_rule",
            data={"group": group, "suggestedLimit": suggested_limit},
        ))
    return suggestions


def recommend_rules(
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[AISuggestion]:
    """Co-run suggestions first, then group load-limit suggestions."""
    suggestions = _co_run_suggestions(clients) + _group_load_suggestions(workers)
    logger.debug("Recommended %d rules", len(suggestions))
    return suggestions


def suggestion_to_rule(suggestion: AISuggestion) -> BusinessRule:
    """
    Turn an accepted rule suggestion into a stored BusinessRule.

    Raises:
        ValueError: if the suggestion is not a rule suggestion this module produces
    """
    if suggestion.action == "add_co_run_rule":
        tasks = list(suggestion.data.get("tasks", []))
        return BusinessRule(
            id=f"co-run-{'-'.join(tasks)}",
            type=RuleType.CO_RUN,
            description=suggestion.message,
            parameters={"tasks": tasks},
        )
    if suggestion.action == "add_load_limit_rule":
        group = suggestion.data.get("group")
        return BusinessRule(
            id=f"load-limit-{group}",
            type=RuleType.LOAD_LIMIT,
            description=suggestion.message,
            parameters={"group": group, "maxLoad": suggestion.data.get("suggestedLimit")},
        )
    raise ValueError(f"Not a rule suggestion: {suggestion.action}")
