"""Per-field validation state and the read-only views handed out to callers."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Sequence, Tuple


class FieldState:
    """
    Mutable validation record for one field.

    Owned exclusively by FormController. Everything outside the controller
    sees FieldSnapshot copies instead.
    """

    def __init__(self, name: str, rule_names: Sequence[str] = (), value: Any = None):
        self.name = name
        self.rule_names: Tuple[str, ...] = tuple(rule_names)
        self.initial_value = value
        self.value = value
        self.is_used = False
        self.is_changed = False
        self.error: Any = None
        # Last EvaluationResult, None until the field is first evaluated
        self.result = None

    def reset(self) -> None:
        """Return to the pristine state the field had when registered."""
        self.value = self.initial_value
        self.is_used = False
        self.is_changed = False
        self.error = None
        self.result = None

    def snapshot(self) -> "FieldSnapshot":
        return FieldSnapshot(
            name=self.name,
            value=self.value,
            initial_value=self.initial_value,
            rule_names=self.rule_names,
            is_used=self.is_used,
            is_changed=self.is_changed,
            error=self.error,
            failed_rule=self.result.rule_name if self.result is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"FieldState(name={self.name!r}, value={self.value!r}, "
            f"is_used={self.is_used}, is_changed={self.is_changed}, error={self.error!r})"
        )


@dataclass(frozen=True)
class FieldSnapshot:
    """Immutable copy of a FieldState at one point in time."""

    name: str
    value: Any
    initial_value: Any
    rule_names: Tuple[str, ...]
    is_used: bool
    is_changed: bool
    error: Any
    failed_rule: Optional[str]

    @property
    def is_valid(self) -> bool:
        """False only when the most recent evaluation failed."""
        return self.failed_rule is None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "initial_value": self.initial_value,
            "rule_names": list(self.rule_names),
            "is_used": self.is_used,
            "is_changed": self.is_changed,
            "error": self.error,
            "failed_rule": self.failed_rule,
        }


class FormContext(Mapping):
    """
    Read-only view of a form's fields, keyed by field name.

    Given to rule predicates so cross-field rules (e.g. password
    confirmation) can read sibling values. Lookups return fresh
    FieldSnapshot copies; the underlying FieldState objects are never
    exposed.
    """

    def __init__(self, fields: Dict[str, FieldState]):
        self._fields = fields

    def __getitem__(self, name: str) -> FieldSnapshot:
        return self._fields[name].snapshot()

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def value_of(self, name: str, default: Any = None) -> Any:
        """Return a sibling field's current value, or default if absent."""
        state = self._fields.get(name)
        return state.value if state is not None else default

    def __repr__(self) -> str:
        return f"FormContext(fields={list(self._fields)!r})"
