"""Form-level validation run before anything is written to the backend."""

from .scorecard import (
    ScorecardRole,
    ScorecardRules,
    ValidationMessage,
    ValidationResult,
    ValidationSeverity,
    rules_from_mapping,
    validate_scorecard_rules,
)

__all__ = [
    'ScorecardRole',
    'ScorecardRules',
    'ValidationMessage',
    'ValidationResult',
    'ValidationSeverity',
    'rules_from_mapping',
    'validate_scorecard_rules',
]
