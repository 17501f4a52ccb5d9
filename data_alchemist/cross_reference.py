"""
Checks that need more than one collection at once.
"""

import logging
from typing import Any, Dict, List

from . import settings
from .helpers import decode_slots, parse_number, row_id, split_list, unique
from .models import Diagnostic, EntityKind, Severity

logger = logging.getLogger(__name__)


def unknown_references(
    clients: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[Diagnostic]:
    """One error per (client, requested task id) pair that names no known task."""
    results = []
    task_ids = {row_id(task, "TaskID") for task in tasks} - {None}
    reported = set()

    for index, client in enumerate(clients):
        client_id = row_id(client, "ClientID")
        owner = client_id if client_id is not None else f"row{index}"
        for task_id in split_list(client.get("RequestedTaskIDs")):
            if task_id in task_ids or (owner, task_id) in reported:
                continue
            reported.add((owner, task_id))
            results.append(Diagnostic(
                id=f"unknown-task-{owner}-{task_id}",
                category="unknown_reference",
                severity=Severity.ERROR,
                message=f"Client requests unknown task: {task_id}",
                entity=EntityKind.CLIENT,
                entity_id=client_id,
                field="RequestedTaskIDs",
                fixable=True,
                suggestion=f"Remove {task_id} from RequestedTaskIDs or create task {task_id}",
            ))
    return results


def skill_coverage(
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[Diagnostic]:
    """Flag tasks requiring skills that no worker lists (case-insensitive)."""
    worker_skills = set()
    for worker in workers:
        worker_skills.update(skill.lower() for skill in split_list(worker.get("Skills")))

    results = []
    for index, task in enumerate(tasks):
        required = unique([skill.lower() for skill in split_list(task.get("RequiredSkills"))])
        missing = [skill for skill in required if skill not in worker_skills]
        if not missing:
            continue
        task_id = row_id(task, "TaskID")
        listed = ", ".join(missing)
        results.append(Diagnostic(
            id=f"missing-skills-{task_id if task_id is not None else f'row{index}'}",
            category="skill_coverage",
            severity=Severity.ERROR,
            message=f"No workers have required skills: {listed}",
            entity=EntityKind.TASK,
            entity_id=task_id,
            field="RequiredSkills",
            fixable=True,
            suggestion=f"Add workers with skills: {listed} or modify task requirements",
        ))
    return results


def overloaded_workers(workers: List[Dict[str, Any]]) -> List[Diagnostic]:
    """Workers whose MaxLoadPerPhase exceeds the number of phases they are available in."""
    results = []
    for index, worker in enumerate(workers):
        slots = decode_slots(worker.get("AvailableSlots"))
        max_load = parse_number(worker.get("MaxLoadPerPhase"))
        if slots is None or max_load is None:
            continue
        if len(slots) < max_load:
            worker_id = row_id(worker, "WorkerID")
            results.append(Diagnostic(
                id=f"overloaded-{worker_id if worker_id is not None else f'row{index}'}",
                category="overloaded_worker",
                severity=Severity.WARNING,
                message=(
                    f"Worker has fewer available slots ({len(slots)}) "
                    f"than max load ({worker.get('MaxLoadPerPhase')})"
                ),
                entity=EntityKind.WORKER,
                entity_id=worker_id,
                field="AvailableSlots",
                fixable=True,
                suggestion="Increase AvailableSlots or decrease MaxLoadPerPhase",
            ))
    return results


def analyze(
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[Diagnostic]:
    results = []
    results.extend(unknown_references(clients, tasks))
    results.extend(skill_coverage(workers, tasks))
    results.extend(overloaded_workers(workers))
    logger.debug("Cross-reference analysis produced %d diagnostics", len(results))
    return results


# --------- Advisory patterns ---------

def _high_priority_low_skills(clients, workers, tasks):
    high_priority = [
        c for c in clients
        if (parse_number(c.get("PriorityLevel")) or 0) >= settings.HIGH_PRIORITY_THRESHOLD
    ]
    low_skill = [
        w for w in workers
        if len(split_list(w.get("Skills"))) < settings.LOW_SKILL_COUNT
    ]
    if high_priority and len(low_skill) > len(workers) * 0.5:
        return (
            EntityKind.CLIENT,
            "High priority clients but many low-skill workers",
            "Consider adding more skilled workers or training existing ones",
        )
    return None


def _task_duration_mismatch(clients, workers, tasks):
    long_tasks = [
        t for t in tasks
        if (parse_number(t.get("Duration")) or 0) > settings.LONG_TASK_DURATION
    ]
    short_availability = []
    for w in workers:
        slots = decode_slots(w.get("AvailableSlots"))
        if slots is not None and len(slots) < settings.SHORT_AVAILABILITY_SLOTS:
            short_availability.append(w)
    if long_tasks and short_availability:
        return (
            EntityKind.TASK,
            "Long tasks but workers with limited phase availability",
            "Consider adjusting task durations or worker availability",
        )
    return None


ADVISORY_PATTERNS = [
    ("high_priority_low_skills", _high_priority_low_skills),
    ("task_duration_mismatch", _task_duration_mismatch),
]


def advisory_findings(
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[Diagnostic]:
    """Batch-level heuristics. Informational only; they never block export."""
    results = []
    for name, check in ADVISORY_PATTERNS:
        finding = check(clients, workers, tasks)
        if finding is None:
            continue
        entity, message, suggestion = finding
        results.append(Diagnostic(
            id=f"ai-{name}",
            category="ai_pattern",
            severity=Severity.INFO,
            message=message,
            entity=entity,
            suggestion=suggestion,
            fixable=False,
        ))
    return results
