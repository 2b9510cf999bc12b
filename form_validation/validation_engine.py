"""
Validation Engine - Ordered Rule Evaluation

Evaluates one field against its rule list. Rules run in the order the field
declares them and evaluation stops at the first failure, so the order of a
field's validations decides which hint is shown when several would fail:

    validations = ["alpha", "required"], value = "12"
    -> "alpha" fails, "required" is never evaluated

The engine is a pure function of (field, form context, registry). It holds no
state, catches nothing and never touches the hint payload.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .field_state import FieldSnapshot, FormContext
from .rule_registry import RuleRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """
    Outcome of evaluating one field.

    Attributes:
        rule_name: Name of the failing rule, None when the field is valid
        last_rule: Name of the last rule whose predicate ran, None when the
            field has no rules
    """

    rule_name: Optional[str] = None
    last_rule: Optional[str] = None

    @classmethod
    def valid(cls, last_rule: Optional[str] = None) -> "EvaluationResult":
        return cls(rule_name=None, last_rule=last_rule)

    @classmethod
    def invalid(cls, rule_name: str) -> "EvaluationResult":
        return cls(rule_name=rule_name, last_rule=rule_name)

    @property
    def is_valid(self) -> bool:
        return self.rule_name is None

    def __bool__(self) -> bool:
        return self.is_valid


def evaluate_field(
    field: FieldSnapshot, form_context: FormContext, registry: RuleRegistry
) -> EvaluationResult:
    """
    Evaluate a field's rules in declared order, stopping at the first failure.

    Args:
        field: Snapshot of the field being validated
        form_context: Read-only view of all fields in the form
        registry: Registry used to resolve rule names

    Returns:
        EvaluationResult.invalid(rule_name) for the first failing rule,
        otherwise EvaluationResult.valid()

    Raises:
        UnknownRuleError: If a rule name is not registered
        Exception: Anything raised by a predicate propagates unchanged
    """
    last_rule = None

    for rule_name in field.rule_names:
        rule = registry.lookup(rule_name)
        last_rule = rule_name

        if not rule.check(field.value, field, form_context):
            logger.debug(
                f"Field '{field.name}' failed rule '{rule_name}'",
                extra={"field": field.name, "rule": rule_name},
            )
            return EvaluationResult.invalid(rule_name)

    logger.debug(
        f"Field '{field.name}' passed {len(field.rule_names)} rule(s)",
        extra={"field": field.name},
    )
    return EvaluationResult.valid(last_rule)
