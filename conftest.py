"""Pytest configuration.

Makes the repository root importable (``backend``, ``main``, ``data_alchemist``)
and provides shared batch fixtures.
"""

import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def client_row(**overrides):
    row = {
        "ClientID": "C1",
        "ClientName": "Acme",
        "PriorityLevel": "3",
        "RequestedTaskIDs": "T1",
        "GroupTag": "GroupA",
        "AttributesJSON": "{}",
    }
    row.update(overrides)
    return row


def worker_row(**overrides):
    row = {
        "WorkerID": "W1",
        "WorkerName": "Ada",
        "Skills": "python,sql",
        "AvailableSlots": "[1,2,3]",
        "MaxLoadPerPhase": "2",
        "WorkerGroup": "GroupA",
        "QualificationLevel": "3",
    }
    row.update(overrides)
    return row


def task_row(**overrides):
    row = {
        "TaskID": "T1",
        "TaskName": "Report",
        "Category": "Analytics",
        "Duration": "2",
        "RequiredSkills": "python",
        "PreferredPhases": "1,2",
        "MaxConcurrent": "1",
    }
    row.update(overrides)
    return row


@pytest.fixture
def clean_batch():
    """A batch that produces no diagnostics at all."""
    return {
        "clients": [
            client_row(),
            client_row(ClientID="C2", ClientName="Globex", RequestedTaskIDs="T1,T2"),
        ],
        "workers": [
            worker_row(),
            worker_row(WorkerID="W2", WorkerName="Grace", Skills="sql,design"),
        ],
        "tasks": [
            task_row(),
            task_row(TaskID="T2", TaskName="Mockups", RequiredSkills="design"),
        ],
    }


@pytest.fixture
def broken_batch():
    """The end-to-end scenario: one defect of each headline kind."""
    return {
        "clients": [
            {"ClientID": "C1", "PriorityLevel": "7", "RequestedTaskIDs": "T1,T9", "AttributesJSON": "not-json"},
        ],
        "workers": [],
        "tasks": [
            {"TaskID": "T1", "Duration": "2", "RequiredSkills": "sql"},
        ],
    }
