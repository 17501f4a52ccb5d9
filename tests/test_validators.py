import pytest

from conftest import client_row, task_row, worker_row
from data_alchemist.models import EntityKind, Severity
from data_alchemist.validators import (
    check_broken_json,
    check_duplicate_ids,
    check_malformed_lists,
    check_missing_columns,
    check_out_of_range,
    is_in_range,
    validate_collection,
)


def ids(diagnostics):
    return [d.id for d in diagnostics]


def test_missing_columns_reported_once_per_column():
    rows = [{"ClientID": "C1"}, {"ClientID": "C2", "PriorityLevel": "2"}]
    res = check_missing_columns(rows, "clients")
    assert ids(res) == [
        "missing-ClientName",
        "missing-RequestedTaskIDs",
        "missing-GroupTag",
        "missing-AttributesJSON",
    ]
    assert all(d.severity == Severity.ERROR and not d.fixable for d in res)


def test_missing_columns_empty_collection():
    assert check_missing_columns([], "workers") == []


def test_duplicate_ids_reported_once_per_value():
    rows = [client_row(), client_row(), client_row(), client_row(ClientID="C2")]
    res = check_duplicate_ids(rows, "clients")
    assert ids(res) == ["duplicate-C1"]
    assert res[0].entity == EntityKind.CLIENT
    assert res[0].entity_id == "C1"
    assert res[0].fixable is True
    assert "3 occurrences" in res[0].message


def test_blank_ids_are_not_duplicates():
    rows = [task_row(TaskID=""), task_row(TaskID="  ")]
    assert check_duplicate_ids(rows, "tasks") == []


@pytest.mark.parametrize("slots", ['[1,"a"]', "not json", '{"a": 1}'])
def test_malformed_slots(slots):
    res = check_malformed_lists([worker_row(AvailableSlots=slots)], "workers")
    assert ids(res) == ["malformed-slots-0"]
    assert res[0].severity == Severity.ERROR
    assert res[0].field == "AvailableSlots"


def test_blank_slots_not_checked():
    assert check_malformed_lists([worker_row(AvailableSlots="")], "workers") == []


def test_empty_list_items_warn():
    rows = [worker_row(), worker_row(WorkerID="W2", Skills="python,,sql")]
    res = check_malformed_lists(rows, "workers")
    assert ids(res) == ["malformed-list-Skills-1"]
    assert res[0].severity == Severity.WARNING
    assert res[0].entity_id == "W2"


@pytest.mark.parametrize("value", ["0", "9", "2.5", "abc", "-1"])
def test_priority_out_of_range(value):
    res = check_out_of_range([client_row(PriorityLevel=value)], "clients")
    assert ids(res) == ["priority-range-0"]
    assert res[0].fixable is True


@pytest.mark.parametrize("value", ["1", "3", "5", "4.0", ""])
def test_priority_in_range_or_blank(value):
    assert check_out_of_range([client_row(PriorityLevel=value)], "clients") == []


def test_non_numeric_value_mentioned_in_message():
    res = check_out_of_range([task_row(Duration="long")], "tasks")
    assert "non-numeric" in res[0].message


def test_task_bounds():
    rows = [task_row(Duration="0", MaxConcurrent="0")]
    assert ids(check_out_of_range(rows, "tasks")) == ["duration-range-0", "concurrent-range-0"]


def test_worker_load_bound():
    res = check_out_of_range([worker_row(MaxLoadPerPhase="0")], "workers")
    assert ids(res) == ["load-range-0"]


def test_is_in_range():
    assert is_in_range("3", 1, 5)
    assert is_in_range(7, 1, None)
    assert not is_in_range("6", 1, 5)
    assert not is_in_range("x", 1, None)


def test_broken_json():
    rows = [client_row(), client_row(ClientID="C2", AttributesJSON="{bad"), client_row(ClientID="C3", AttributesJSON="[1]")]
    res = check_broken_json(rows, "clients")
    assert ids(res) == ["broken-json-1", "broken-json-2"]
    assert res[0].suggestion is not None and "{}" in res[0].suggestion


def test_broken_json_only_applies_to_clients():
    assert check_broken_json([worker_row(AttributesJSON="{bad")], "workers") == []


def test_blank_id_omits_entity_id():
    res = check_out_of_range([client_row(ClientID="", PriorityLevel="0")], "clients")
    assert res[0].entity_id is None
    assert "entityId" not in res[0].to_dict()


def test_validate_collection_check_order():
    rows = [
        client_row(PriorityLevel="0", AttributesJSON="oops"),
        client_row(RequestedTaskIDs="T1,,T2"),
    ]
    assert ids(validate_collection(rows, "clients")) == [
        "duplicate-C1",
        "malformed-list-RequestedTaskIDs-1",
        "priority-range-0",
        "broken-json-0",
    ]


def test_unknown_collection():
    with pytest.raises(ValueError):
        validate_collection([], "projects")


def test_deeply_nested_attributes_are_broken_json():
    res = validate_collection([client_row(AttributesJSON="[" * 200000)], "clients")
    assert ids(res) == ["broken-json-0"]


@pytest.mark.parametrize("slots", ["[" * 200000, "[NaN]", "[1, Infinity]", "[-Infinity]"])
def test_unusable_slot_text_is_malformed(slots):
    res = validate_collection([worker_row(AvailableSlots=slots)], "workers")
    assert ids(res) == ["malformed-slots-0"]


def test_nan_attribute_value_is_broken_json():
    res = check_broken_json([client_row(AttributesJSON='{"score": NaN}')], "clients")
    assert ids(res) == ["broken-json-0"]
