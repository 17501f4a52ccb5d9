"""
Prioritization weights: defaults, preset profiles and normalisation.
"""

from typing import Any, Dict

from .models import PrioritizationWeights

DEFAULT_WEIGHTS = PrioritizationWeights()

PRESET_PROFILES = {
    "maximizeFulfillment": {
        "name": "Maximize Fulfillment",
        "description": "Complete as many tasks as possible",
        "weights": PrioritizationWeights(
            priority_level=80, task_fulfillment=100, fairness=30,
            cost_optimization=20, speed_optimization=60, skill_utilization=70,
        ),
    },
    "fairDistribution": {
        "name": "Fair Distribution",
        "description": "Ensure fair workload distribution",
        "weights": PrioritizationWeights(
            priority_level=60, task_fulfillment=70, fairness=100,
            cost_optimization=40, speed_optimization=50, skill_utilization=60,
        ),
    },
    "minimizeWorkload": {
        "name": "Minimize Workload",
        "description": "Reduce overall workload and stress",
        "weights": PrioritizationWeights(
            priority_level=40, task_fulfillment=50, fairness=80,
            cost_optimization=60, speed_optimization=30, skill_utilization=40,
        ),
    },
    "costOptimized": {
        "name": "Cost Optimized",
        "description": "Minimize costs while maintaining quality",
        "weights": PrioritizationWeights(
            priority_level=50, task_fulfillment=60, fairness=40,
            cost_optimization=100, speed_optimization=40, skill_utilization=50,
        ),
    },
    "speedOptimized": {
        "name": "Speed Optimized",
        "description": "Complete tasks as quickly as possible",
        "weights": PrioritizationWeights(
            priority_level=70, task_fulfillment=80, fairness=30,
            cost_optimization=30, speed_optimization=100, skill_utilization=60,
        ),
    },
}


def preset_weights(name: str) -> PrioritizationWeights:
    try:
        return PRESET_PROFILES[name]["weights"].model_copy()
    except KeyError:
        raise ValueError(f"Unknown preset: {name}") from None


def normalize_weights(weights: PrioritizationWeights) -> Dict[str, float]:
    """
    Scale the weights so they sum to 1.

    All-zero weights are returned unchanged (as zeros).
    """
    raw: Dict[str, Any] = weights.to_dict()
    total = sum(raw.values())
    if total <= 0:
        return {k: 0.0 for k in raw}
    return {k: v / total for k, v in raw.items()}
