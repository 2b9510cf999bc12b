"""
Rule Registry - Named Validation Rules

A rule is a (predicate, hint producer) pair identified by name. Fields refer
to rules by name only, so the same rule can be shared by any number of fields
and forms.

The registry starts empty. The embedding application registers every rule it
needs, normally once at startup, either in code:

    registry = RuleRegistry()
    registry.register("required", RuleEntry(
        predicate=lambda value, field, form: bool(str(value).strip()),
        hint_producer=lambda value: "This field is required",
    ))

or declaratively through a config file (see rule_loader.py).

Registering a name that already exists replaces the previous rule (last write
wins). Evaluations always resolve rules at call time, so a replacement affects
every later evaluation but never errors that were already stored on a field.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List

from .errors import UnknownRuleError

logger = logging.getLogger(__name__)


class ValidationRule(ABC):
    """
    Abstract base class for validation rules.

    Subclass this for rules that need more than two plain functions, e.g.
    cross-field rules that carry configuration. For simple rules use
    RuleEntry.
    """

    @abstractmethod
    def check(self, value: Any, field, form) -> bool:
        """
        Return True when the value passes this rule.

        Args:
            value: Current field value (opaque to the engine)
            field: FieldSnapshot of the field being validated
            form: FormContext giving read-only access to sibling fields

        Must not mutate anything it receives.
        """

    @abstractmethod
    def hint(self, value: Any) -> Any:
        """Return the error descriptor shown when check() fails."""

    def description(self) -> str:
        """Return plain English description of what this rule checks."""
        return ""


class RuleEntry(ValidationRule):
    """Rule built from a predicate callable and a hint producer callable."""

    def __init__(
        self,
        predicate: Callable[[Any, Any, Any], Any],
        hint_producer: Callable[[Any], Any],
        description: str = "",
    ):
        if not callable(predicate):
            raise TypeError(f"predicate must be callable, got {type(predicate).__name__}")
        if not callable(hint_producer):
            raise TypeError(
                f"hint_producer must be callable, got {type(hint_producer).__name__}"
            )
        self.predicate = predicate
        self.hint_producer = hint_producer
        self._description = description

    def check(self, value, field, form) -> bool:
        return bool(self.predicate(value, field, form))

    def hint(self, value):
        return self.hint_producer(value)

    def description(self) -> str:
        return self._description

    def __repr__(self) -> str:
        name = getattr(self.predicate, "__name__", repr(self.predicate))
        return f"RuleEntry(predicate={name})"


class RuleRegistry:
    """Mutable mapping from rule name to ValidationRule."""

    def __init__(self):
        self._rules: Dict[str, ValidationRule] = {}

    def register(self, name: str, entry: ValidationRule) -> None:
        """
        Register a rule under a name, replacing any existing rule.

        Args:
            name: Rule name referenced from field validation lists
            entry: ValidationRule (usually a RuleEntry)

        Raises:
            ValueError: If name is empty
            TypeError: If entry is not a ValidationRule
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Rule name must be a non-empty string")
        if not isinstance(entry, ValidationRule):
            raise TypeError(
                f"Rule '{name}' must be a ValidationRule, got {type(entry).__name__}"
            )

        if name in self._rules:
            logger.debug(f"Replacing rule '{name}'")
        self._rules[name] = entry

    def register_many(self, entries: Dict[str, ValidationRule]) -> None:
        """Register every name -> rule pair in entries."""
        for name, entry in entries.items():
            self.register(name, entry)

    def lookup(self, name: str) -> ValidationRule:
        """
        Return the rule registered under name.

        Raises:
            UnknownRuleError: If no rule has that name
        """
        try:
            return self._rules[name]
        except KeyError:
            raise UnknownRuleError(name) from None

    def names(self) -> List[str]:
        """Return registered rule names in registration order."""
        return list(self._rules)

    def __contains__(self, name) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)
