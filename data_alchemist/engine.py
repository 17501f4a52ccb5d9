"""
Batch entry points: validate a whole snapshot and summarise the outcome.
"""

import logging
from typing import Any, Dict, List

from .cross_reference import advisory_findings, analyze
from .models import Diagnostic, Severity, ValidationSummary
from .validators import validate_collection

logger = logging.getLogger(__name__)


def validate_all(
    clients: List[Dict[str, Any]],
    workers: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
) -> List[Diagnostic]:
    """
    Validate one import batch.

    Field checks run per collection (clients, workers, tasks), followed by the
    cross-reference analysis and then the advisory findings. Inputs are never
    modified and repeated calls on the same batch give the same list.

    Returns:
        Diagnostics in a stable order
    """
    results: List[Diagnostic] = []
    results.extend(validate_collection(clients, "clients"))
    results.extend(validate_collection(workers, "workers"))
    results.extend(validate_collection(tasks, "tasks"))
    results.extend(analyze(clients, workers, tasks))
    results.extend(advisory_findings(clients, workers, tasks))
    logger.debug(
        "Validated batch (%d clients, %d workers, %d tasks): %d diagnostics",
        len(clients), len(workers), len(tasks), len(results),
    )
    return results


def summarize(diagnostics: List[Diagnostic]) -> ValidationSummary:
    return ValidationSummary(
        total=len(diagnostics),
        errors=sum(1 for d in diagnostics if d.severity == Severity.ERROR),
        warnings=sum(1 for d in diagnostics if d.severity == Severity.WARNING),
        info=sum(1 for d in diagnostics if d.severity == Severity.INFO),
        fixable=sum(1 for d in diagnostics if d.fixable),
    )


def blocks_export(diagnostics: List[Diagnostic]) -> bool:
    """Any error blocks export; warnings and info never do."""
    return any(d.severity == Severity.ERROR for d in diagnostics)
