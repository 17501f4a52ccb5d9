"""
Record, rule, diagnostic and suggestion models.

Rows travel through the engine as plain string-keyed dicts, exactly as the
upstream parser produced them. The Client/Worker/Task models document the
canonical shape of those rows and are used to normalise imported records.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class EntityKind(str, Enum):
    CLIENT = "client"
    WORKER = "worker"
    TASK = "task"


COLLECTION_ENTITIES = {
    "clients": EntityKind.CLIENT,
    "workers": EntityKind.WORKER,
    "tasks": EntityKind.TASK,
}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class RuleType(str, Enum):
    CO_RUN = "coRun"
    SLOT_RESTRICTION = "slotRestriction"
    LOAD_LIMIT = "loadLimit"
    PHASE_WINDOW = "phaseWindow"
    PATTERN_MATCH = "patternMatch"
    PRECEDENCE_OVERRIDE = "precedenceOverride"


class SuggestionKind(str, Enum):
    CORRECTION = "correction"
    RULE = "rule"


# --------- Records ---------

class _Record(BaseModel):
    """Raw row as delivered by the parser: every canonical field is a string."""

    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="before")
    @classmethod
    def _as_text(cls, value):
        if value is None:
            return ""
        return value if isinstance(value, str) else str(value)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class Client(_Record):
    ClientID: str = ""
    ClientName: str = ""
    PriorityLevel: str = ""
    RequestedTaskIDs: str = ""
    GroupTag: str = ""
    AttributesJSON: str = ""


class Worker(_Record):
    WorkerID: str = ""
    WorkerName: str = ""
    Skills: str = ""
    AvailableSlots: str = ""
    MaxLoadPerPhase: str = ""
    WorkerGroup: str = ""
    QualificationLevel: str = ""


class Task(_Record):
    TaskID: str = ""
    TaskName: str = ""
    Category: str = ""
    Duration: str = ""
    RequiredSkills: str = ""
    PreferredPhases: str = ""
    MaxConcurrent: str = ""


RECORD_MODELS = {
    "clients": Client,
    "workers": Worker,
    "tasks": Task,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Snapshot(BaseModel):
    """The three collections of one import batch."""

    clients: List[Dict[str, Any]] = Field(default_factory=list)
    workers: List[Dict[str, Any]] = Field(default_factory=list)
    tasks: List[Dict[str, Any]] = Field(default_factory=list)


# --------- Business rules ---------

class _RuleParameters(_CamelModel):
    pass


class CoRunParameters(_RuleParameters):
    tasks: List[str] = Field(min_length=2)


class SlotRestrictionParameters(_RuleParameters):
    group: str = Field(min_length=1)
    max_slots: int = Field(ge=1)


class LoadLimitParameters(_RuleParameters):
    group: str = Field(min_length=1)
    max_load: int = Field(ge=0)


class PhaseWindowParameters(_RuleParameters):
    task_id: str = Field(min_length=1)
    phases: List[int] = Field(min_length=2, max_length=2)

    @field_validator("phases")
    @classmethod
    def _ordered_window(cls, v):
        start, end = v
        if start < 1 or start > end:
            raise ValueError("phases must be [start, end] with 1 <= start <= end")
        return v


class PatternMatchParameters(_RuleParameters):
    model_config = ConfigDict(extra="allow")

    field: Optional[str] = None
    regex: Optional[str] = None
    template: Optional[str] = None


class PrecedenceOverrideParameters(_RuleParameters):
    model_config = ConfigDict(extra="allow")

    rule_ids: Optional[List[str]] = None
    order: Optional[str] = None


RULE_PARAMETERS = {
    RuleType.CO_RUN: CoRunParameters,
    RuleType.SLOT_RESTRICTION: SlotRestrictionParameters,
    RuleType.LOAD_LIMIT: LoadLimitParameters,
    RuleType.PHASE_WINDOW: PhaseWindowParameters,
    RuleType.PATTERN_MATCH: PatternMatchParameters,
    RuleType.PRECEDENCE_OVERRIDE: PrecedenceOverrideParameters,
}


class BusinessRule(_CamelModel):
    id: str = Field(min_length=1)
    type: RuleType
    enabled: bool = True
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)
    priority: Optional[int] = None

    @model_validator(mode="after")
    def _check_parameters(self):
        params = RULE_PARAMETERS[self.type].model_validate(self.parameters)
        self.parameters = params.to_dict()
        return self


# --------- Diagnostics & suggestions ---------

class Diagnostic(_CamelModel):
    id: str
    category: str
    severity: Severity
    message: str
    entity: EntityKind
    entity_id: Optional[str] = None
    field: Optional[str] = None
    suggestion: Optional[str] = None
    fixable: bool = False


# The original UI calls these validation results.
ValidationResult = Diagnostic


class ValidationSummary(_CamelModel):
    total: int = 0
    errors: int = 0
    warnings: int = 0
    info: int = 0
    fixable: int = 0


class AISuggestion(_CamelModel):
    id: str
    kind: SuggestionKind
    message: str
    confidence: float = Field(ge=0.0, le=1.0)
    action: str
    data: Dict[str, Any] = Field(default_factory=dict)


class RuleParseResult(_CamelModel):
    status: str
    message: str
    intent: Optional[str] = None
    rule: Optional[BusinessRule] = None

    @property
    def matched(self) -> bool:
        return self.status == "matched"


class HeaderMapping(_CamelModel):
    original_header: str
    mapped_header: str
    confidence: float


class PrioritizationWeights(_CamelModel):
    priority_level: float = Field(70, ge=0, le=100)
    task_fulfillment: float = Field(80, ge=0, le=100)
    fairness: float = Field(60, ge=0, le=100)
    cost_optimization: float = Field(40, ge=0, le=100)
    speed_optimization: float = Field(50, ge=0, le=100)
    skill_utilization: float = Field(70, ge=0, le=100)
