import os
import json
import logging
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional, Iterable

import pandas as pd

from data_alchemist import settings
from data_alchemist.corrections import suggest_corrections
from data_alchemist.engine import blocks_export, summarize, validate_all
from data_alchemist.header_mapping import detect_collection, map_frame
from data_alchemist.helpers import as_text, row_id
from data_alchemist.models import (
    RECORD_MODELS,
    AISuggestion,
    BusinessRule,
    Diagnostic,
    HeaderMapping,
    PrioritizationWeights,
    RuleParseResult,
    SuggestionKind,
    ValidationSummary,
)
from data_alchemist.priorities import normalize_weights, preset_weights
from data_alchemist.recommender import recommend_rules, suggestion_to_rule
from data_alchemist.rule_parser import parse_rule
from data_alchemist.search import search_records

logger = logging.getLogger(__name__)

COLLECTIONS = ("clients", "workers", "tasks")


class ExportBlockedError(ValueError):
    """Raised when an export is attempted while the batch still has errors."""


def read_csv(path: str) -> pd.DataFrame:
    """Read a CSV upload with every cell kept as text ("" for empty cells)."""
    try:
        return pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        raise ValueError(f"File is empty: {os.path.basename(path)}") from None


class DataManager:
    def __init__(self):
        self.clients: List[Dict[str, Any]] = []
        self.workers: List[Dict[str, Any]] = []
        self.tasks: List[Dict[str, Any]] = []
        self.rules: List[BusinessRule] = []
        self.priorities = PrioritizationWeights()
        self.header_mappings: Dict[str, List[HeaderMapping]] = {}
        # Suggestions last offered to the user, by id
        self._suggestions: Dict[str, AISuggestion] = {}

    @property
    def has_data(self) -> bool:
        return bool(self.clients or self.workers or self.tasks)

    def _collection(self, name: str) -> List[Dict[str, Any]]:
        if name not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {name}")
        return getattr(self, name)

    # --------- Loading ---------

    def load_frames(self, clients_df: pd.DataFrame, workers_df: pd.DataFrame, tasks_df: pd.DataFrame):
        """Map headers onto the canonical columns and keep the rows as string dicts."""
        frames = {"clients": clients_df, "workers": workers_df, "tasks": tasks_df}
        for name, df in frames.items():
            detected = detect_collection(list(df.columns))
            if detected is not None and detected != name:
                raise ValueError(f"The {name} file looks like a {detected} file")
        for name, df in frames.items():
            mapped, report = map_frame(df.fillna(""), name)
            model = RECORD_MODELS[name]
            rows = [model.model_validate(row).to_row() for row in mapped.to_dict(orient="records")]
            setattr(self, name, rows)
            self.header_mappings[name] = report
        self._suggestions.clear()
        logger.info(
            "Loaded %d clients, %d workers, %d tasks",
            len(self.clients), len(self.workers), len(self.tasks),
        )

    def load_files(self, clients_path, workers_path, tasks_path):
        self.load_frames(read_csv(clients_path), read_csv(workers_path), read_csv(tasks_path))

    def load_records(self, clients=None, workers=None, tasks=None):
        """Replace the batch with already-parsed rows (copied, not mapped)."""
        self.clients = [dict(row) for row in clients or []]
        self.workers = [dict(row) for row in workers or []]
        self.tasks = [dict(row) for row in tasks or []]
        self._suggestions.clear()

    def data(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"clients": self.clients, "workers": self.workers, "tasks": self.tasks}

    def data_summary(self) -> Dict[str, int]:
        return {
            "total_clients": len(self.clients),
            "total_workers": len(self.workers),
            "total_tasks": len(self.tasks),
        }

    def update_record(self, collection: str, row_index: int, field: str, value: Any) -> Dict[str, Any]:
        """
        Overwrite one cell of a loaded row, as a grid edit would.

        Args:
            collection: "clients", "workers" or "tasks"
            row_index: position of the row in its collection
            field: canonical column name
            value: new cell value, stored as text

        Returns:
            The updated row

        Raises:
            ValueError: for an unknown collection or column
            IndexError: if no row has that index
        """
        rows = self._collection(collection)
        if field not in settings.REQUIRED_COLUMNS[collection]:
            raise ValueError(f"Unknown {collection} column: {field}")
        if not 0 <= row_index < len(rows):
            raise IndexError(f"No {collection} row at index {row_index}")
        row = rows[row_index]
        row[field] = as_text(value)
        logger.info("Updated %s[%d].%s", collection, row_index, field)
        return row

    # --------- Validation & search ---------

    def validate_all(self) -> List[Diagnostic]:
        return validate_all(self.clients, self.workers, self.tasks)

    def validation_summary(self, diagnostics: Optional[List[Diagnostic]] = None) -> ValidationSummary:
        if diagnostics is None:
            diagnostics = self.validate_all()
        return summarize(diagnostics)

    def search(self, query: str) -> Dict[str, List[Dict[str, Any]]]:
        results = search_records(query, self.clients, self.workers, self.tasks)
        logger.info(
            "Search %r matched %d clients, %d workers, %d tasks",
            query, len(results["clients"]), len(results["workers"]), len(results["tasks"]),
        )
        return results

    # --------- Corrections ---------

    def suggest_corrections(self) -> List[AISuggestion]:
        suggestions = suggest_corrections(self.clients, self.workers, self.tasks)
        self._remember(suggestions)
        return suggestions

    def _remember(self, suggestions: Iterable[AISuggestion]):
        for suggestion in suggestions:
            self._suggestions[suggestion.id] = suggestion

    def _find_row(self, rows: List[Dict[str, Any]], data: Dict[str, Any], id_field: str) -> Optional[Dict[str, Any]]:
        entity_id = data.get("entityId")
        index = data.get("rowIndex")
        if isinstance(index, int) and 0 <= index < len(rows):
            row = rows[index]
            if entity_id is None or row_id(row, id_field) == entity_id:
                return row
        if entity_id is not None:
            for row in rows:
                if row_id(row, id_field) == entity_id:
                    return row
        return None

    def apply_suggestion(self, suggestion: AISuggestion) -> bool:
        """
        Write a correction's suggested value into the matching row.

        Returns:
            True if a row was updated, False if no row matches any more
        """
        if suggestion.kind != SuggestionKind.CORRECTION:
            raise ValueError(f"Not a correction suggestion: {suggestion.id}")
        data = suggestion.data
        collection = data.get("entity", "") + "s"
        rows = self._collection(collection)
        row = self._find_row(rows, data, settings.ID_FIELDS[collection])
        if row is None:
            logger.warning("No row left for suggestion %s", suggestion.id)
            return False
        row[data["field"]] = str(data["suggestedValue"])
        return True

    def apply_corrections(self, ids: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Apply correction suggestions and re-validate.

        Args:
            ids: suggestion ids to apply; None applies every current correction

        Returns:
            Applied/skipped ids and the error counts before and after
        """
        before = self.validate_all()
        current = {s.id: s for s in self.suggest_corrections()}
        if ids is None:
            selected = list(current.values())
            skipped: List[str] = []
        else:
            selected = [current[i] for i in ids if i in current]
            skipped = [i for i in ids if i not in current]

        applied = []
        for suggestion in selected:
            if self.apply_suggestion(suggestion):
                applied.append(suggestion.id)
            else:
                skipped.append(suggestion.id)

        after = self.validate_all()
        logger.info(
            "Applied %d corrections; diagnostics %d -> %d",
            len(applied), len(before), len(after),
        )
        return {
            "applied": applied,
            "skipped": skipped,
            "errors_before": len(before),
            "errors_after": len(after),
            "diagnostics": after,
        }

    # --------- Rules ---------

    def get_recommended_rules(self) -> List[AISuggestion]:
        suggestions = recommend_rules(self.clients, self.workers, self.tasks)
        self._remember(suggestions)
        return suggestions

    def accept_rule_suggestion(self, suggestion_id: str) -> BusinessRule:
        suggestion = self._suggestions.get(suggestion_id)
        if suggestion is None:
            # Recommendations depend only on the data, so recompute before giving up
            current = {s.id: s for s in self.get_recommended_rules()}
            suggestion = current.get(suggestion_id)
        if suggestion is None or suggestion.kind != SuggestionKind.RULE:
            raise KeyError(suggestion_id)
        return self.add_rule(suggestion_to_rule(suggestion))

    def generate_rule(self, text: str) -> RuleParseResult:
        """Parse a sentence into a rule without storing it."""
        return parse_rule(text)

    def add_rule_from_text(self, text: str) -> RuleParseResult:
        result = parse_rule(text)
        if result.matched:
            self.add_rule(result.rule)
        return result

    def add_rule(self, rule: BusinessRule) -> BusinessRule:
        """Store a rule; a rule with the same id is replaced in place."""
        for i, existing in enumerate(self.rules):
            if existing.id == rule.id:
                self.rules[i] = rule
                logger.info("Replaced rule %s", rule.id)
                return rule
        self.rules.append(rule)
        logger.info("Added rule %s (%s)", rule.id, rule.type.value)
        return rule

    def get_rule(self, rule_id: str) -> BusinessRule:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(rule_id)

    def remove_rule(self, rule_id: str) -> BusinessRule:
        rule = self.get_rule(rule_id)
        self.rules.remove(rule)
        logger.info("Removed rule %s", rule_id)
        return rule

    def set_rule_enabled(self, rule_id: str, enabled: Optional[bool] = None) -> BusinessRule:
        """Enable or disable a rule; None flips the current state."""
        rule = self.get_rule(rule_id)
        rule.enabled = (not rule.enabled) if enabled is None else bool(enabled)
        return rule

    def enabled_rules(self) -> List[BusinessRule]:
        return [rule for rule in self.rules if rule.enabled]

    # --------- Priorities ---------

    def set_priorities(self, weights: Dict[str, float]) -> PrioritizationWeights:
        """Merge the given weights (camelCase or snake_case keys) into the current ones."""
        names = {}
        for name, field in PrioritizationWeights.model_fields.items():
            names[name] = name
            names[field.alias or name] = name
        merged = self.priorities.model_dump()
        for key, value in weights.items():
            if key not in names:
                raise ValueError(f"Unknown weight: {key}")
            merged[names[key]] = value
        self.priorities = PrioritizationWeights.model_validate(merged)
        return self.priorities

    def apply_preset(self, name: str) -> PrioritizationWeights:
        self.priorities = preset_weights(name)
        return self.priorities

    # --------- Export ---------

    def build_export_bundle(self, diagnostics: Optional[List[Diagnostic]] = None) -> Dict[str, Any]:
        """The rules.json configuration bundle."""
        summary = self.validation_summary(diagnostics)
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "businessRules": [rule.to_dict() for rule in self.enabled_rules()],
            "prioritizationWeights": self.priorities.to_dict(),
            "normalizedWeights": normalize_weights(self.priorities),
            "validationSummary": summary.to_dict(),
            "dataSummary": {
                "clients": len(self.clients),
                "workers": len(self.workers),
                "tasks": len(self.tasks),
            },
        }

    def export_all(self, output_dir: Optional[str] = None, force: bool = False) -> str:
        """
        Write clients.csv, workers.csv, tasks.csv and rules.json.

        Raises:
            ExportBlockedError: if the batch has errors and force is not set
        """
        output_dir = output_dir or settings.EXPORT_DIR
        diagnostics = self.validate_all()
        if blocks_export(diagnostics) and not force:
            errors = summarize(diagnostics).errors
            raise ExportBlockedError(f"Export blocked: {errors} validation errors remain")

        os.makedirs(output_dir, exist_ok=True)
        for name in COLLECTIONS:
            columns = settings.REQUIRED_COLUMNS[name]
            df = pd.DataFrame(self._collection(name))
            if df.empty:
                df = pd.DataFrame(columns=columns)
            df.to_csv(os.path.join(output_dir, f"{name}.csv"), index=False)
        with open(os.path.join(output_dir, "rules.json"), "w") as f:
            json.dump(self.build_export_bundle(diagnostics), f, indent=2)
        logger.info("Exported batch to %s", output_dir)
        return output_dir
