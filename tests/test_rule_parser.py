import pytest

from data_alchemist.models import RuleType
from data_alchemist.rule_parser import parse_rule


def test_co_run():
    res = parse_rule("Run T1 and T2 together")
    assert res.matched
    assert res.intent == "co-run"
    assert res.rule.type == RuleType.CO_RUN
    assert res.rule.id == "co-run-T1-T2"
    assert res.rule.parameters == {"tasks": ["T1", "T2"]}
    assert res.rule.description == "Run T1 and T2 together"


def test_co_run_tokens_uppercased_and_deduplicated():
    res = parse_rule("t1, T3 and t1 should co-run")
    assert res.rule.parameters == {"tasks": ["T1", "T3"]}


def test_co_run_needs_two_tasks():
    res = parse_rule("Run T1 together")
    assert not res.matched
    assert res.rule is None


def test_slot_restriction_attached_group_name():
    res = parse_rule("Limit GroupA to 3 slots")
    assert res.intent == "slot-restriction"
    assert res.rule.id == "slot-restriction-GroupA"
    assert res.rule.parameters == {"group": "GroupA", "maxSlots": 3}


def test_slot_restriction_named_group():
    res = parse_rule("Restrict sales group to at most 2 slots per phase")
    assert res.rule.type == RuleType.SLOT_RESTRICTION
    assert res.rule.parameters == {"group": "sales", "maxSlots": 2}


def test_phase_window():
    res = parse_rule("T3 should only run in phase 2-4")
    assert res.intent == "phase-window"
    assert res.rule.id == "phase-window-T3-2-4"
    assert res.rule.parameters == {"taskId": "T3", "phases": [2, 4]}


def test_phase_window_reversed_range_is_unrecognized():
    res = parse_rule("T3 should only run in phase 4-2")
    assert res.status == "unrecognized"


def test_load_limit():
    res = parse_rule("Set a load limit of 5 per phase for group Ops")
    assert res.intent == "load-limit"
    assert res.rule.id == "load-limit-Ops"
    assert res.rule.parameters == {"group": "Ops", "maxLoad": 5}


@pytest.mark.parametrize("text", ["hello world", "", "   ", None, "limit everything"])
def test_unrecognized_never_raises(text):
    res = parse_rule(text)
    assert res.status == "unrecognized"
    assert res.intent is None
    assert res.message == "Could not understand the rule. Please try a different format."


def test_group_name_before_group_keyword():
    res = parse_rule("Sales group must be limited to 3 slots")
    assert res.intent == "slot-restriction"
    assert res.rule.parameters == {"group": "Sales", "maxSlots": 3}


@pytest.mark.parametrize("text", [
    "Limit group must to 3 slots",
    "The group should have at most 3 slots",
])
def test_verbs_after_group_are_not_group_names(text):
    res = parse_rule(text)
    assert res.status == "unrecognized"
    assert res.rule is None


@pytest.mark.parametrize("text", [
    "Limit GroupA to " + "9" * 5000 + " slots",
    "T1 should only run in phase 1-" + "9" * 5000,
    "Set a load limit of " + "9" * 5000 + " per phase for group Ops",
])
def test_overlong_numbers_are_unrecognized(text):
    res = parse_rule(text)
    assert res.status == "unrecognized"
    assert res.rule is None


def test_bare_together_triggers_co_run():
    res = parse_rule("T4 and T5 go together")
    assert res.rule.id == "co-run-T4-T5"
