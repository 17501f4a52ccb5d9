"""
Keyword/regex extraction of a BusinessRule from a free-form sentence.

This is a rule-based matcher, not language understanding. Patterns are tried in
order; the first one whose trigger fires and whose extractor finds every
required token produces the rule. Anything else is reported as unrecognized.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .helpers import as_text, unique
from .models import BusinessRule, RuleParseResult, RuleType

logger = logging.getLogger(__name__)

TASK_TOKEN = re.compile(r"\b([A-Za-z]\d+)\b")
# At most nine digits; a longer digit run matches nothing
_INT = r"(\d{1,9})"

PHASE_RANGE = re.compile(r"\b" + _INT + r"\s*-\s*" + _INT + r"\b")

_NAME = r"([A-Za-z0-9_][A-Za-z0-9_-]*)"
# Tried in order: "GroupA", "Sales group", "group Sales"
_GROUP_PATTERNS = [
    re.compile(r"\b(group[A-Za-z0-9_-]+)\b", re.IGNORECASE),
    re.compile(r"\b" + _NAME + r"\s+(?:worker\s+)?group\b", re.IGNORECASE),
    re.compile(r"\bgroup(?:\s*[:=]\s*|\s+)[\"']?" + _NAME, re.IGNORECASE),
]
_NOT_GROUP_NAMES = {
    # articles, prepositions, determiners
    "a", "an", "the", "to", "of", "at", "in", "on", "for", "with", "by", "per",
    "from", "each", "every", "any", "all", "this", "that", "its", "my", "our",
    "their", "worker", "workers", "groups",
    # verbs and auxiliaries
    "is", "are", "be", "was", "were", "has", "have", "had", "can", "could",
    "must", "should", "shall", "will", "would", "may", "might", "only", "gets",
    "limit", "limited", "limits", "restrict", "restricted", "cap", "capped",
    "set", "keep", "allow", "allowed", "give", "max", "maximum",
}

_SLOT_COUNT_PATTERNS = [
    re.compile(r"\b" + _INT + r"\s*(?:[A-Za-z]+\s+)?slots?\b", re.IGNORECASE),
    re.compile(r"\b(?:to|at most|max(?:imum)?|no more than|cap(?:ped)?(?: at)?)\s+" + _INT + r"\b", re.IGNORECASE),
]
_LOAD_VALUE_PATTERNS = [
    re.compile(r"\b" + _INT + r"\s*(?:[A-Za-z]+\s+)?(?:per|/|each|a)\s*phase\b", re.IGNORECASE),
    re.compile(r"\b(?:to|at|of|max(?:imum)?|no more than)\s+" + _INT + r"\b", re.IGNORECASE),
]

CO_RUN_TRIGGERS = [
    "run together", "co-run", "corun", "co run", "together with",
    "same phase", "alongside", "jointly", "together",
]
CAPACITY_LIMIT_TRIGGERS = ["limit", "restrict", "at most", "max", "no more than", "cap"]


@dataclass(frozen=True)
class IntentPattern:
    name: str
    rule_type: RuleType
    trigger: Callable[[str], bool]
    extract: Callable[[str], Optional[Dict[str, Any]]]
    rule_id: Callable[[Dict[str, Any]], str]


def _find_group(text: str) -> Optional[str]:
    for pattern in _GROUP_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1)
            if name.lower() not in _NOT_GROUP_NAMES:
                return name
    return None


def _find_number(text: str, patterns: List[re.Pattern]) -> Optional[int]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def _task_tokens(text: str) -> List[str]:
    return unique([token.upper() for token in TASK_TOKEN.findall(text)])


# --------- Extractors ---------

def _extract_co_run(text: str) -> Optional[Dict[str, Any]]:
    tasks = _task_tokens(text)
    if len(tasks) < 2:
        return None
    return {"tasks": tasks}


def _extract_slot_restriction(text: str) -> Optional[Dict[str, Any]]:
    group = _find_group(text)
    max_slots = _find_number(text, _SLOT_COUNT_PATTERNS)
    if group is None or max_slots is None:
        return None
    return {"group": group, "maxSlots": max_slots}


def _extract_phase_window(text: str) -> Optional[Dict[str, Any]]:
    tasks = _task_tokens(text)
    window = PHASE_RANGE.search(text)
    if not tasks or window is None:
        return None
    start, end = int(window.group(1)), int(window.group(2))
    return {"taskId": tasks[0], "phases": [start, end]}


def _extract_load_limit(text: str) -> Optional[Dict[str, Any]]:
    group = _find_group(text)
    max_load = _find_number(text, _LOAD_VALUE_PATTERNS)
    if group is None or max_load is None:
        return None
    return {"group": group, "maxLoad": max_load}


INTENT_PATTERNS = [
    IntentPattern(
        name="co-run",
        rule_type=RuleType.CO_RUN,
        trigger=lambda s: any(phrase in s for phrase in CO_RUN_TRIGGERS),
        extract=_extract_co_run,
        rule_id=lambda p: "co-run-" + "-".join(p["tasks"]),
    ),
    IntentPattern(
        name="slot-restriction",
        rule_type=RuleType.SLOT_RESTRICTION,
        trigger=lambda s: "slot" in s and any(phrase in s for phrase in CAPACITY_LIMIT_TRIGGERS),
        extract=_extract_slot_restriction,
        rule_id=lambda p: f"slot-restriction-{p['group']}",
    ),
    IntentPattern(
        name="phase-window",
        rule_type=RuleType.PHASE_WINDOW,
        trigger=lambda s: "only run" in s and "phase" in s,
        extract=_extract_phase_window,
        rule_id=lambda p: f"phase-window-{p['taskId']}-{p['phases'][0]}-{p['phases'][1]}",
    ),
    IntentPattern(
        name="load-limit",
        rule_type=RuleType.LOAD_LIMIT,
        trigger=lambda s: "load" in s and "limit" in s,
        extract=_extract_load_limit,
        rule_id=lambda p: f"load-limit-{p['group']}",
    ),
]


def parse_rule(text: Any) -> RuleParseResult:
    """
    Convert a sentence into a BusinessRule candidate.

    Never raises: when no pattern's required tokens are all present the result
    has status "unrecognized" and no rule.
    """
    sentence = as_text(text).strip()
    lowered = sentence.lower()

    if sentence:
        for pattern in INTENT_PATTERNS:
            if not pattern.trigger(lowered):
                continue
            try:
                params = pattern.extract(sentence)
                if params is None:
                    continue
                rule = BusinessRule(
                    id=pattern.rule_id(params),
                    type=pattern.rule_type,
                    description=sentence,
                    parameters=params,
                )
            except ValueError as e:
                logger.debug("Rejected %s candidate for %r: %s", pattern.name, sentence, e)
                continue
            return RuleParseResult(
                status="matched",
                intent=pattern.name,
                rule=rule,
                message=f"Recognized {pattern.name} rule",
            )

    return RuleParseResult(
        status="unrecognized",
        message="Could not understand the rule. Please try a different format.",
    )
