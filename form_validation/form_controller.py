"""
Form Controller - Field Lifecycle and Validation Orchestration

The controller owns the FieldState of every field in one form. Field wrappers
register on mount, forward every value change, and deregister on unmount. The
embedding application calls validate_all() from its submit handler and
show_error()/hide_error() from asynchronous response handlers.

Per-field state machine:

    Pristine (is_used=False)
      -> Touched (is_used=True, is_changed=False|True)
      -> Valid | Invalid(rule_name)

Transitions only happen through on_value_change, on_blur, validate,
validate_all, show_error and hide_error. Nothing re-validates in the
background.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import DuplicateFieldError, UnknownFieldError
from .field_state import FieldSnapshot, FieldState, FormContext
from .rule_registry import RuleRegistry
from .validation_engine import EvaluationResult, evaluate_field

logger = logging.getLogger(__name__)

# Distinguishes show_error(name) from show_error(name, None)
_MISSING = object()

Listener = Callable[[FieldSnapshot], None]


class FormController:
    """Orchestrates validation for the fields of one form."""

    def __init__(self, registry: RuleRegistry):
        """
        Initialize an empty form.

        Args:
            registry: Rule registry used for every evaluation in this form
        """
        self.registry = registry
        self._fields: Dict[str, FieldState] = {}
        self._listeners: List[Listener] = []

    # Field lifecycle

    def register_field(
        self, name: str, rule_names: Sequence[str] = (), value: Any = None
    ) -> FieldSnapshot:
        """
        Add a field to the form.

        Args:
            name: Field name, non-empty and unique within this form
            rule_names: Ordered rule names to evaluate for this field
            value: Initial value

        Returns:
            Snapshot of the new, pristine field

        Raises:
            DuplicateFieldError: If name is empty or already registered
        """
        if not isinstance(name, str) or not name:
            raise DuplicateFieldError(
                name, "Field name must be a non-empty string"
            )
        if name in self._fields:
            raise DuplicateFieldError(name)
        if isinstance(rule_names, str):
            # A bare string would otherwise be split into one rule per character
            rule_names = [rule_names]

        state = FieldState(name, rule_names, value)
        self._fields[name] = state
        logger.debug(
            f"Registered field '{name}'",
            extra={"field": name, "rules": list(state.rule_names)},
        )
        return state.snapshot()

    def deregister_field(self, name: str) -> None:
        """
        Remove a field from the form.

        Raises:
            UnknownFieldError: If name is not registered
        """
        self._get_state(name)
        del self._fields[name]
        logger.debug(f"Deregistered field '{name}'", extra={"field": name})

    # User interaction

    def on_value_change(self, name: str, value: Any) -> FieldSnapshot:
        """
        Record a new value for a field and re-evaluate it.

        Called on every keystroke or selection change. is_changed becomes True
        the first time the value differs from the initial value and stays
        True afterwards, even if the value is changed back.

        Returns:
            Snapshot of the updated field

        Raises:
            UnknownFieldError: If name is not registered
        """
        state = self._get_state(name)
        state.value = value
        state.is_used = True
        if value != state.initial_value:
            state.is_changed = True

        self._evaluate(state)
        return self._changed(state)

    def on_blur(self, name: str) -> FieldSnapshot:
        """Mark a field as used when it loses focus and re-evaluate it."""
        state = self._get_state(name)
        state.is_used = True
        self._evaluate(state)
        return self._changed(state)

    # Explicit validation

    def validate(self, name: str) -> EvaluationResult:
        """
        Validate one field as if the user had interacted with it.

        Forces is_used and is_changed to True before evaluating, so the
        resulting error is displayable even for untouched fields.

        Returns:
            EvaluationResult for the field

        Raises:
            UnknownFieldError: If name is not registered
            UnknownRuleError: If one of the field's rules is not registered
        """
        state = self._get_state(name)
        state.is_used = True
        state.is_changed = True

        result = self._evaluate(state)
        self._changed(state)
        return result

    def validate_all(self) -> Dict[str, str]:
        """
        Validate every field in registration order.

        Returns:
            Dict mapping each failing field name to the name of its failing
            rule. Fields that pass are absent; an empty dict means the whole
            form is valid.
        """
        failures: Dict[str, str] = {}
        for name in list(self._fields):
            result = self.validate(name)
            if not result.is_valid:
                failures[name] = result.rule_name

        logger.debug(
            f"validate_all: {len(failures)} of {len(self._fields)} field(s) invalid",
            extra={"failures": failures},
        )
        return failures

    # External errors

    def show_error(self, name: str, hint: Any = _MISSING) -> FieldSnapshot:
        """
        Set a field's error directly, outside the normal rule flow.

        Used to surface errors from elsewhere, e.g. a server rejecting a
        username. is_used and is_changed are left as they are.

        Args:
            name: Field name
            hint: Error descriptor to store. When omitted, the hint of the
                field's last evaluated rule is produced for the current value.
                A field that has not been evaluated yet uses its last
                declared rule.

        Returns:
            Snapshot of the updated field

        Raises:
            UnknownFieldError: If name is not registered
            ValueError: If hint is omitted and the field has no rules
            UnknownRuleError: If hint is omitted and the fallback rule is
                not registered
        """
        state = self._get_state(name)

        if hint is _MISSING:
            last_rule = state.result.last_rule if state.result is not None else None
            if last_rule is None and state.rule_names:
                last_rule = state.rule_names[-1]
            if last_rule is None:
                raise ValueError(f"No hint given for field '{name}' and it has no rules")
            hint = self.registry.lookup(last_rule).hint(state.value)

        state.error = hint
        return self._changed(state)

    def hide_error(self, name: str) -> FieldSnapshot:
        """Clear a field's error without re-running validation."""
        state = self._get_state(name)
        state.error = None
        return self._changed(state)

    def reset(self) -> None:
        """Return every field to its pristine, initial-value state."""
        for state in self._fields.values():
            state.reset()
            self._changed(state)

    # Accessors

    def get_field(self, name: str) -> FieldSnapshot:
        return self._get_state(name).snapshot()

    def fields(self) -> List[FieldSnapshot]:
        """Return snapshots of all fields in registration order."""
        return [state.snapshot() for state in self._fields.values()]

    def field_names(self) -> List[str]:
        return list(self._fields)

    def context(self) -> FormContext:
        """Return a read-only view of the form for cross-field inspection."""
        return FormContext(self._fields)

    def errors(self) -> Dict[str, Any]:
        """Return field name -> error for every field currently holding one."""
        return {
            name: state.error
            for name, state in self._fields.items()
            if state.error is not None
        }

    def has_errors(self) -> bool:
        return any(state.error is not None for state in self._fields.values())

    def __contains__(self, name) -> bool:
        return name in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    # Change notification

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call listener with the new FieldSnapshot after every state change.

        Returns:
            Function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Internals

    def _get_state(self, name: str) -> FieldState:
        try:
            return self._fields[name]
        except KeyError:
            raise UnknownFieldError(name) from None

    def _evaluate(self, state: FieldState) -> EvaluationResult:
        result = evaluate_field(state.snapshot(), self.context(), self.registry)

        # Produce the hint before touching state so a failing hint producer
        # leaves the field as it was
        error: Optional[Any] = None
        if not result.is_valid:
            error = self.registry.lookup(result.rule_name).hint(state.value)

        state.result = result
        state.error = error
        return result

    def _changed(self, state: FieldState) -> FieldSnapshot:
        snapshot = state.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot
