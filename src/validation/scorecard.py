"""
Scorecard rule validation.

Runs before a ``scorecard_rules`` row is written. Any ERROR message blocks
the save; nothing reaches the backend until the form is fixed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
REQUIRED_WEIGHT_TOTAL = 100


class ScorecardRole(str, Enum):
    SALES = "Sales"
    SERVICE = "Service"


class ValidationSeverity(str, Enum):
    """Validation message severity."""
    ERROR = "error"        # Blocks submission
    WARNING = "warning"    # Allows submission


@dataclass
class ValidationMessage:
    message: str
    field: Optional[str] = None
    severity: ValidationSeverity = ValidationSeverity.ERROR


@dataclass
class ValidationResult:
    messages: List[ValidationMessage] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not any(m.severity == ValidationSeverity.ERROR for m in self.messages)

    @property
    def errors(self) -> List[str]:
        return [m.message for m in self.messages if m.severity == ValidationSeverity.ERROR]

    def add(self, message: str, field_name: Optional[str] = None,
            severity: ValidationSeverity = ValidationSeverity.ERROR) -> None:
        self.messages.append(ValidationMessage(message, field_name, severity))


@dataclass
class ScorecardRules:
    """Scorecard settings for one agency role."""
    role: ScorecardRole = ScorecardRole.SALES
    selected_metrics: List[str] = field(default_factory=list)
    n_required: int = 2
    weights: Dict[str, Any] = field(default_factory=dict)
    counted_days: Dict[str, bool] = field(default_factory=dict)
    count_weekend_if_submitted: bool = True
    ring_metrics: List[str] = field(default_factory=list)

    def to_row(self, agency_id: str) -> Dict[str, Any]:
        """Backend row shape, keyed on (agency_id, role)."""
        return {
            "agency_id": agency_id,
            "role": self.role.value,
            "selected_metrics": list(self.selected_metrics),
            "n_required": self.n_required,
            "weights": dict(self.weights),
            "counted_days": dict(self.counted_days),
            "count_weekend_if_submitted": self.count_weekend_if_submitted,
            "ring_metrics": list(self.ring_metrics),
        }


def max_required(selected_metrics: List[str]) -> int:
    return max(1, len(selected_metrics))


def _is_whole_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def validate_scorecard_rules(rules: ScorecardRules) -> ValidationResult:
    """Collect every problem with the rules rather than stopping at the first."""
    result = ValidationResult()

    if not rules.selected_metrics:
        result.add("Select at least one metric", "selected_metrics")

    total = 0
    weights_ok = True
    for metric, weight in rules.weights.items():
        if not _is_whole_number(weight) or weight < 0:
            result.add(f"Weight for {metric} must be a whole number of 0 or more", "weights")
            weights_ok = False
            continue
        total += int(weight)
    if weights_ok and total != REQUIRED_WEIGHT_TOTAL:
        result.add(f"Weights must total exactly {REQUIRED_WEIGHT_TOTAL} (currently {total})", "weights")

    unknown_weights = sorted(set(rules.weights) - set(rules.selected_metrics))
    if unknown_weights and rules.selected_metrics:
        result.add(
            f"Weights given for metrics that are not selected: {', '.join(unknown_weights)}",
            "weights",
            ValidationSeverity.WARNING,
        )

    upper = max_required(rules.selected_metrics)
    if not _is_whole_number(rules.n_required) or not 1 <= rules.n_required <= upper:
        result.add(f"Required metrics must be between 1 and {upper}", "n_required")

    stray = [m for m in rules.ring_metrics if m not in rules.selected_metrics]
    if stray:
        result.add(f"Ring metrics must be selected metrics: {', '.join(stray)}", "ring_metrics")

    unknown_days = sorted(set(rules.counted_days) - set(WEEKDAYS))
    if unknown_days:
        result.add(f"Unknown days: {', '.join(unknown_days)}", "counted_days")
    if not any(rules.counted_days.get(day) for day in WEEKDAYS):
        result.add("Count at least one day", "counted_days")

    return result


def rules_from_mapping(data: Mapping[str, Any]) -> ScorecardRules:
    """Build rules from a stored row, falling back to the ring = selected default."""
    selected = list(data.get("selected_metrics") or [])
    return ScorecardRules(
        role=ScorecardRole(data.get("role") or ScorecardRole.SALES),
        selected_metrics=selected,
        n_required=data.get("n_required") or 2,
        weights=dict(data.get("weights") or {}),
        counted_days=dict(data.get("counted_days") or {}),
        count_weekend_if_submitted=bool(data.get("count_weekend_if_submitted", True)),
        ring_metrics=list(data.get("ring_metrics") or selected),
    )
