"""
Validation and rule-inference engine for Client / Worker / Task batches.
"""

from .corrections import suggest_corrections
from .cross_reference import advisory_findings, analyze
from .engine import blocks_export, summarize, validate_all
from .header_mapping import detect_collection, map_headers
from .models import (
    AISuggestion,
    BusinessRule,
    Diagnostic,
    EntityKind,
    PrioritizationWeights,
    RuleParseResult,
    RuleType,
    Severity,
    SuggestionKind,
    ValidationResult,
    ValidationSummary,
)
from .recommender import recommend_rules, suggestion_to_rule
from .rule_parser import parse_rule
from .search import search_records
from .validators import validate_collection

__all__ = [
    "AISuggestion",
    "BusinessRule",
    "Diagnostic",
    "EntityKind",
    "PrioritizationWeights",
    "RuleParseResult",
    "RuleType",
    "Severity",
    "SuggestionKind",
    "ValidationResult",
    "ValidationSummary",
    "advisory_findings",
    "analyze",
    "blocks_export",
    "detect_collection",
    "map_headers",
    "parse_rule",
    "recommend_rules",
    "search_records",
    "suggest_corrections",
    "suggestion_to_rule",
    "summarize",
    "validate_all",
    "validate_collection",
]
