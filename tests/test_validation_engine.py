"""
Tests for evaluate_field()

Covers ordering, break-on-first-failure and error propagation.
"""
import pytest

from form_validation import EvaluationResult, RuleEntry, UnknownRuleError, evaluate_field
from form_validation.field_state import FieldState, FormContext


def make_field(name, rule_names, value):
    state = FieldState(name, rule_names, value)
    return state, FormContext({name: state})


def counting_rule(calls, name, passes):
    def predicate(value, field, form):
        calls.append(name)
        return passes

    return RuleEntry(predicate, lambda value: f"{name} failed")


class TestEvaluationResult:
    """Test EvaluationResult."""

    def test_valid(self):
        """Test valid result is truthy and names no rule."""
        result = EvaluationResult.valid("last")
        assert result.is_valid
        assert bool(result)
        assert result.rule_name is None
        assert result.last_rule == "last"

    def test_invalid(self):
        """Test invalid result is falsy and names the failing rule."""
        result = EvaluationResult.invalid("required")
        assert not result.is_valid
        assert not result
        assert result.rule_name == "required"
        assert result.last_rule == "required"


class TestEvaluateField:
    """Test evaluate_field()."""

    def test_empty_rule_list_is_valid(self, registry):
        """Test that a field with no rules is always valid."""
        for value in ("", None, 0, "anything"):
            state, context = make_field("free", [], value)
            result = evaluate_field(state.snapshot(), context, registry)
            assert result.is_valid
            assert result.last_rule is None

    def test_passing_rules(self, registry):
        """Test that a value passing every rule is valid."""
        state, context = make_field("name", ["required", "alpha"], "Ada")
        result = evaluate_field(state.snapshot(), context, registry)
        assert result == EvaluationResult.valid("alpha")

    def test_required_scenario(self, registry):
        """Test blank username fails required."""
        state, context = make_field("username", ["required"], "")
        result = evaluate_field(state.snapshot(), context, registry)
        assert result.rule_name == "required"

    def test_first_failure_wins(self, registry):
        """Test that alpha fails first and required is never reported."""
        state, context = make_field("name", ["alpha", "required"], "12")
        result = evaluate_field(state.snapshot(), context, registry)
        assert result.rule_name == "alpha"

    def test_later_rules_not_evaluated(self, registry):
        """Test break-on-first-failure: rules after the failure never run."""
        calls = []
        registry.register("r1", counting_rule(calls, "r1", False))
        registry.register("r2", counting_rule(calls, "r2", False))
        registry.register("r3", counting_rule(calls, "r3", True))

        state, context = make_field("f", ["r1", "r2", "r3"], "x")
        result = evaluate_field(state.snapshot(), context, registry)

        assert result.rule_name == "r1"
        assert calls == ["r1"]

    def test_rules_run_in_declared_order(self, registry):
        """Test that rules are evaluated in list order."""
        calls = []
        registry.register("a", counting_rule(calls, "a", True))
        registry.register("b", counting_rule(calls, "b", True))

        state, context = make_field("f", ["b", "a"], "x")
        evaluate_field(state.snapshot(), context, registry)

        assert calls == ["b", "a"]

    def test_unknown_rule_propagates(self, registry):
        """Test that an unregistered rule name is fatal."""
        state, context = make_field("f", ["required", "nope"], "x")
        with pytest.raises(UnknownRuleError):
            evaluate_field(state.snapshot(), context, registry)

    def test_unknown_rule_after_failure_not_resolved(self, registry):
        """Test that rules after the first failure are not even looked up."""
        state, context = make_field("f", ["required", "nope"], "")
        result = evaluate_field(state.snapshot(), context, registry)
        assert result.rule_name == "required"

    def test_predicate_exception_propagates(self, registry):
        """Test that a throwing predicate is not swallowed."""

        def broken(value, field, form):
            raise RuntimeError("rule bug")

        registry.register("broken", RuleEntry(broken, lambda value: None))
        state, context = make_field("f", ["broken"], "x")

        with pytest.raises(RuntimeError, match="rule bug"):
            evaluate_field(state.snapshot(), context, registry)

    def test_predicate_receives_value_field_and_context(self, registry):
        """Test predicate arguments."""
        seen = {}

        def spy(value, field, form):
            seen.update(value=value, field=field.name, names=list(form))
            return True

        registry.register("spy", RuleEntry(spy, lambda value: None))
        state, context = make_field("email", ["spy"], "a@b.c")
        evaluate_field(state.snapshot(), context, registry)

        assert seen == {"value": "a@b.c", "field": "email", "names": ["email"]}


class TestFormContext:
    """Test the read-only form view."""

    def test_context_returns_snapshots(self):
        """Test that the context hands out immutable copies."""
        state = FieldState("a", [], "1")
        context = FormContext({"a": state})

        snapshot = context["a"]
        with pytest.raises(AttributeError):
            snapshot.value = "2"
        assert state.value == "1"

    def test_context_is_not_writable(self):
        """Test that fields cannot be added or replaced through the context."""
        context = FormContext({"a": FieldState("a")})
        with pytest.raises(TypeError):
            context["b"] = FieldState("b")

    def test_value_of(self):
        """Test sibling value helper."""
        context = FormContext({"a": FieldState("a", [], "x")})
        assert context.value_of("a") == "x"
        assert context.value_of("missing", "default") == "default"
