"""
Tests for FieldBinding and checkable value normalization.
"""
import pytest

from form_validation import FieldBinding, UnknownFieldError, normalize_control_value
from form_validation.controls import UNCHECKED_VALUE, is_submit_disabled


class TestNormalizeControlValue:
    """Test normalize_control_value()."""

    def test_unchecked_reports_empty(self):
        """Test that an unchecked control reports the empty sentinel."""
        assert normalize_control_value("yes", checked=False) == UNCHECKED_VALUE

    def test_checked_reports_value(self):
        """Test that a checked control reports its value attribute."""
        assert normalize_control_value("yes", checked=True) == "yes"

    def test_non_checkable_untouched(self):
        """Test that ordinary inputs are passed through."""
        assert normalize_control_value("text") == "text"


class TestFieldBinding:
    """Test the field wrapper lifecycle."""

    def test_mount_registers_field(self, form):
        """Test that creating a binding registers the field."""
        binding = FieldBinding(form, "username", ["required"], "")
        assert "username" in form
        assert binding.state.is_used is False

    def test_change_forwards_value(self, form):
        """Test that change events reach the controller."""
        binding = FieldBinding(form, "username", ["required"], "")
        state = binding.change("")

        assert state.error == "This field is required"
        assert binding.change("ada").error is None

    def test_unmount_deregisters(self, form):
        """Test that unmounting removes the field once."""
        binding = FieldBinding(form, "username", ["required"])
        binding.unmount()
        binding.unmount()

        assert "username" not in form
        with pytest.raises(UnknownFieldError):
            binding.blur()

    def test_blur(self, form):
        """Test blur marks the field used."""
        binding = FieldBinding(form, "username", ["required"], "")
        assert binding.blur().is_used is True

    def test_refresh_after_external_error(self, form):
        """Test that refresh picks up show_error results."""
        binding = FieldBinding(form, "username", ["required"], "ada")
        form.show_error("username", "taken")
        assert binding.refresh().error == "taken"


class TestCheckableBinding:
    """Test checkbox/radio behaviour."""

    def test_unchecked_box_registers_empty_value(self, form):
        """Test that an unchecked box starts with the empty sentinel."""
        binding = FieldBinding(form, "terms", ["required"], "accepted", checkable=True)
        assert binding.state.value == UNCHECKED_VALUE

    def test_unchecked_box_fails_required(self, form):
        """Test that an unchecked box fails required whatever its value attribute."""
        FieldBinding(form, "terms", ["required"], "accepted", checkable=True)
        assert form.validate_all() == {"terms": "required"}

    def test_checking_box_passes(self, form):
        """Test that checking the box reports its value."""
        binding = FieldBinding(form, "terms", ["required"], "accepted", checkable=True)
        state = binding.change(checked=True)

        assert state.value == "accepted"
        assert state.is_changed is True
        assert state.error is None

    def test_unchecking_box_again(self, form):
        """Test that unchecking reverts to the empty value but stays changed."""
        binding = FieldBinding(
            form, "terms", ["required"], "accepted", checkable=True, checked=True
        )
        assert binding.state.value == "accepted"

        state = binding.change(checked=False)
        assert state.value == UNCHECKED_VALUE
        assert state.is_changed is True
        assert state.failed_rule == "required"

    def test_optional_unchecked_box_passes(self, form):
        """Test that an unchecked box without rules stays valid."""
        FieldBinding(form, "newsletter", [], "yes", checkable=True)
        assert form.validate_all() == {}


class TestSubmitDisabled:
    """Test submit control state."""

    def test_disabled_while_errors(self, form):
        """Test that submit is disabled while any field has an error."""
        binding = FieldBinding(form, "username", ["required"], "")
        assert not is_submit_disabled(form)

        binding.change("")
        assert is_submit_disabled(form)

        binding.change("ada")
        assert not is_submit_disabled(form)
