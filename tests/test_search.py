from conftest import client_row, task_row, worker_row
from data_alchemist.search import matches_query, search_records


def test_duration_more_than():
    tasks = [task_row(Duration="3"), task_row(TaskID="T2", Duration="2")]
    res = search_records("tasks with duration more than 2", [client_row()], [], tasks)
    assert [t["TaskID"] for t in res["tasks"]] == ["T1"]
    assert res["clients"] == []


def test_phase_query_understands_ranges():
    tasks = [task_row(PreferredPhases="1-3"), task_row(TaskID="T2", PreferredPhases="[4,5]")]
    res = search_records("phase 2", [], [], tasks)
    assert [t["TaskID"] for t in res["tasks"]] == ["T1"]


def test_priority_query():
    clients = [client_row(PriorityLevel="5"), client_row(ClientID="C2", PriorityLevel="3")]
    res = search_records("priority 5", clients, [], [])
    assert [c["ClientID"] for c in res["clients"]] == ["C1"]


def test_skill_query_checks_workers_and_tasks():
    workers = [worker_row(Skills="Python,SQL"), worker_row(WorkerID="W2", Skills="design")]
    tasks = [task_row(RequiredSkills="python")]
    res = search_records("skill python", [], workers, tasks)
    assert [w["WorkerID"] for w in res["workers"]] == ["W1"]
    assert [t["TaskID"] for t in res["tasks"]] == ["T1"]


def test_plain_text_search_is_case_insensitive():
    clients = [client_row(ClientName="Acme Corp"), client_row(ClientID="C2", ClientName="Globex")]
    res = search_records("ACME", clients, [], [])
    assert [c["ClientID"] for c in res["clients"]] == ["C1"]


def test_results_are_copies():
    clients = [client_row()]
    res = search_records("acme", clients, [], [])
    res["clients"][0]["ClientName"] = "changed"
    assert clients[0]["ClientName"] == "Acme"


def test_blank_query_matches_nothing():
    assert not matches_query(client_row(), "   ")


def test_overlong_numbers_fall_back_to_text_search():
    tasks = [task_row(PreferredPhases="1-" + "9" * 5000)]
    assert search_records("phase " + "9" * 5000, [], [], tasks)["tasks"] == []
    assert search_records("phase 2", [], [], tasks)["tasks"] == []
