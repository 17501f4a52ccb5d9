import json

import pytest

from backend import DataManager, ExportBlockedError
from conftest import client_row, worker_row
from data_alchemist.models import BusinessRule


def write_csv(path, text):
    path.write_text(text)
    return str(path)


@pytest.fixture
def csv_files(tmp_path):
    clients = write_csv(
        tmp_path / "clients.csv",
        "Client ID,Name,Priority,RequestedTaskIDs,GroupTag,AttributesJSON\n"
        'C1,Acme,7,"T1,T2",GroupA,not-json\n'
        'C2,Globex,2,"T1,T2",GroupB,{}\n',
    )
    workers = write_csv(
        tmp_path / "workers.csv",
        "WorkerID,WorkerName,Skills,AvailableSlots,MaxLoadPerPhase,WorkerGroup,QualificationLevel\n"
        'W1,Ada,"python,sql","[1,2,3]",2,GroupA,3\n',
    )
    tasks = write_csv(
        tmp_path / "tasks.csv",
        "TaskID,TaskName,Category,Duration,RequiredSkills,PreferredPhases,MaxConcurrent\n"
        "T1,Report,Analytics,2,python,1,1\n"
        "T2,Query,Analytics,1,sql,2,1\n",
    )
    return clients, workers, tasks


@pytest.fixture
def loaded(csv_files):
    dm = DataManager()
    dm.load_files(*csv_files)
    return dm


def test_load_files_maps_headers_and_keeps_text(loaded):
    assert loaded.clients[0] == {
        "ClientID": "C1",
        "ClientName": "Acme",
        "PriorityLevel": "7",
        "RequestedTaskIDs": "T1,T2",
        "GroupTag": "GroupA",
        "AttributesJSON": "not-json",
    }
    assert loaded.workers[0]["AvailableSlots"] == "[1,2,3]"
    assert {m.mapped_header for m in loaded.header_mappings["clients"]} >= {"ClientID", "ClientName", "PriorityLevel"}


def test_empty_file_rejected(tmp_path, csv_files):
    empty = write_csv(tmp_path / "empty.csv", "")
    with pytest.raises(ValueError):
        DataManager().load_files(empty, csv_files[1], csv_files[2])


def test_mismatched_file_rejected(csv_files):
    clients, _, tasks = csv_files
    with pytest.raises(ValueError, match="workers file looks like a tasks file"):
        DataManager().load_files(clients, tasks, tasks)


def test_update_record_then_revalidate(loaded):
    row = loaded.update_record("clients", 0, "PriorityLevel", 4)
    assert row["PriorityLevel"] == "4"
    assert loaded.clients[0] is row
    assert [d.id for d in loaded.validate_all() if d.severity == "error"] == ["broken-json-0"]


def test_update_record_rejects_bad_targets(loaded):
    with pytest.raises(ValueError):
        loaded.update_record("clients", 0, "Nope", "x")
    with pytest.raises(ValueError):
        loaded.update_record("projects", 0, "ClientID", "x")
    with pytest.raises(IndexError):
        loaded.update_record("clients", 2, "ClientID", "x")
    with pytest.raises(IndexError):
        loaded.update_record("clients", -1, "ClientID", "x")


def test_validation_summary(loaded):
    summary = loaded.validation_summary()
    assert summary.errors == 2
    assert summary.fixable == 2


def test_apply_all_corrections(loaded):
    result = loaded.apply_corrections()
    assert sorted(result["applied"]) == ["fix-json-C1", "fix-priority-C1"]
    assert result["errors_before"] == 2
    assert result["errors_after"] == 0
    assert loaded.clients[0]["PriorityLevel"] == "5"
    assert loaded.clients[0]["AttributesJSON"] == "{}"


def test_apply_selected_corrections(loaded):
    result = loaded.apply_corrections(["fix-json-C1", "fix-unknown"])
    assert result["applied"] == ["fix-json-C1"]
    assert result["skipped"] == ["fix-unknown"]
    assert loaded.clients[0]["PriorityLevel"] == "7"


def test_apply_suggestion_finds_moved_row(loaded):
    suggestion = loaded.suggest_corrections()[0]
    loaded.clients.reverse()
    assert loaded.apply_suggestion(suggestion)
    assert loaded.clients[1]["ClientID"] == suggestion.data["entityId"]
    assert loaded.clients[1]["PriorityLevel"] == "5"
    assert loaded.clients[0]["PriorityLevel"] == "2"


def test_recommended_rule_accepted(loaded):
    recommendations = loaded.get_recommended_rules()
    assert [s.id for s in recommendations] == ["co-run-rec-T1-T2"]
    rule = loaded.accept_rule_suggestion("co-run-rec-T1-T2")
    assert rule.id == "co-run-T1-T2"
    assert loaded.rules == [rule]


def test_accept_unknown_suggestion(loaded):
    with pytest.raises(KeyError):
        loaded.accept_rule_suggestion("nope")


def test_rule_store():
    dm = DataManager()
    result = dm.add_rule_from_text("Run T1 and T2 together")
    assert result.matched
    assert [r.id for r in dm.rules] == ["co-run-T1-T2"]

    assert not dm.add_rule_from_text("gibberish").matched
    assert len(dm.rules) == 1

    replacement = BusinessRule(id="co-run-T1-T2", type="coRun", parameters={"tasks": ["T1", "T2", "T3"]})
    dm.add_rule(replacement)
    assert dm.rules == [replacement]

    assert dm.set_rule_enabled("co-run-T1-T2").enabled is False
    assert dm.set_rule_enabled("co-run-T1-T2", True).enabled is True

    dm.remove_rule("co-run-T1-T2")
    assert dm.rules == []
    with pytest.raises(KeyError):
        dm.remove_rule("co-run-T1-T2")


def test_priorities():
    dm = DataManager()
    dm.set_priorities({"fairness": 90, "priority_level": 10})
    assert dm.priorities.fairness == 90
    assert dm.priorities.priority_level == 10
    dm.set_priorities({"costOptimization": 5})
    assert dm.priorities.cost_optimization == 5
    assert dm.priorities.fairness == 90

    with pytest.raises(ValueError):
        dm.set_priorities({"speed": 1})

    assert dm.apply_preset("maximizeFulfillment").task_fulfillment == 100
    with pytest.raises(ValueError):
        dm.apply_preset("unknown")


def test_export_blocked_by_errors(loaded, tmp_path):
    with pytest.raises(ExportBlockedError):
        loaded.export_all(str(tmp_path / "out"))


def test_export_bundle(clean_batch, tmp_path):
    dm = DataManager()
    dm.load_records(**clean_batch)
    dm.add_rule_from_text("Run T1 and T2 together")
    dm.add_rule_from_text("Limit GroupA to 3 slots")
    dm.set_rule_enabled("slot-restriction-GroupA", False)

    out = dm.export_all(str(tmp_path / "out"))

    for name in ("clients.csv", "workers.csv", "tasks.csv", "rules.json"):
        assert (tmp_path / "out" / name).exists()
    bundle = json.loads((tmp_path / "out" / "rules.json").read_text())
    assert set(bundle) >= {"timestamp", "businessRules", "prioritizationWeights", "validationSummary", "dataSummary"}
    assert [r["id"] for r in bundle["businessRules"]] == ["co-run-T1-T2"]
    assert bundle["validationSummary"]["errors"] == 0
    assert bundle["dataSummary"] == {"clients": 2, "workers": 2, "tasks": 2}
    assert out == str(tmp_path / "out")


def test_forced_export(tmp_path):
    dm = DataManager()
    dm.load_records(clients=[client_row(PriorityLevel="9")], workers=[worker_row()])
    dm.export_all(str(tmp_path), force=True)
    bundle = json.loads((tmp_path / "rules.json").read_text())
    assert bundle["validationSummary"]["errors"] >= 1
    assert (tmp_path / "tasks.csv").read_text().startswith("TaskID,")
