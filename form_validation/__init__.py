"""
form-validation-lib: Declarative, rule-driven validation for form inputs

This library provides the validation core of a form:
- A registry of named rules supplied entirely by the application
- Per-field validation state (value, is_used, is_changed, error)
- Ordered rule evaluation that stops at the first failing rule
- Form-level orchestration: validate one field, validate all, show/hide errors
- Optional YAML configuration of rules and forms

Example:
    from form_validation import FormController, RuleEntry, RuleRegistry

    registry = RuleRegistry()
    registry.register("required", RuleEntry(
        lambda value, field, form: bool(value.strip()),
        lambda value: "This field is required",
    ))

    form = FormController(registry)
    form.register_field("username", ["required"], "")
    form.validate_all()   # {"username": "required"}
"""

from .api import FormValidationService
from .controls import FieldBinding, normalize_control_value
from .errors import (
    ConfigError,
    DuplicateFieldError,
    FormValidationError,
    UnknownFieldError,
    UnknownRuleError,
)
from .field_state import FieldSnapshot, FormContext
from .form_controller import FormController
from .rule_registry import RuleEntry, RuleRegistry, ValidationRule
from .validation_engine import EvaluationResult, evaluate_field

__version__ = "0.1.0"
__all__ = [
    "ConfigError",
    "DuplicateFieldError",
    "EvaluationResult",
    "FieldBinding",
    "FieldSnapshot",
    "FormContext",
    "FormController",
    "FormValidationError",
    "FormValidationService",
    "RuleEntry",
    "RuleRegistry",
    "UnknownFieldError",
    "UnknownRuleError",
    "ValidationRule",
    "evaluate_field",
    "normalize_control_value",
]
