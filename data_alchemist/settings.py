"""
Application configuration and engine constants.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Service configuration
UPLOAD_DIR = os.getenv("DATA_ALCHEMIST_UPLOAD_DIR", "uploads")
EXPORT_DIR = os.getenv("DATA_ALCHEMIST_EXPORT_DIR", "exports")
LOG_LEVEL = os.getenv("DATA_ALCHEMIST_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("DATA_ALCHEMIST_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Per-entity required columns, in canonical order
REQUIRED_COLUMNS = {
    "clients": [
        "ClientID", "ClientName", "PriorityLevel",
        "RequestedTaskIDs", "GroupTag", "AttributesJSON"
    ],
    "workers": [
        "WorkerID", "WorkerName", "Skills",
        "AvailableSlots", "MaxLoadPerPhase",
        "WorkerGroup", "QualificationLevel"
    ],
    "tasks": [
        "TaskID", "TaskName", "Category",
        "Duration", "RequiredSkills",
        "PreferredPhases", "MaxConcurrent"
    ],
}

ID_FIELDS = {
    "clients": "ClientID",
    "workers": "WorkerID",
    "tasks": "TaskID",
}

# Comma-separated list columns
LIST_FIELDS = {
    "clients": ["RequestedTaskIDs"],
    "workers": ["Skills"],
    "tasks": ["RequiredSkills", "PreferredPhases"],
}

# Validation bounds: (collection, field) -> (minimum, maximum)
RANGE_RULES = {
    ("clients", "PriorityLevel"): (1, 5),
    ("workers", "MaxLoadPerPhase"): (1, None),
    ("tasks", "Duration"): (1, None),
    ("tasks", "MaxConcurrent"): (1, None),
}

DEFAULT_ATTRIBUTES_JSON = "{}"
DEFAULT_AVAILABLE_SLOTS = "[1,2,3,4,5]"

# Correction confidences
CORRECTION_CONFIDENCE = {
    "fix_priority": 0.9,
    "fix_json": 0.8,
    "fix_slots": 0.9,
    "fix_load": 0.9,
    "fix_duration": 0.9,
    "fix_concurrent": 0.9,
    "fix_list": 0.85,
}

# Rule recommender thresholds
CO_RUN_MIN_OCCURRENCES = 2
CO_RUN_CONFIDENCE = 0.7
GROUP_OVERLOAD_FACTOR = 2
GROUP_LOAD_LIMIT_FACTOR = 1.5
GROUP_OVERLOAD_CONFIDENCE = 0.8

# Advisory pattern thresholds
HIGH_PRIORITY_THRESHOLD = 4
LOW_SKILL_COUNT = 2
LONG_TASK_DURATION = 3
SHORT_AVAILABILITY_SLOTS = 3
