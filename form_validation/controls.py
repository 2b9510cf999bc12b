"""
Field wrapper side of the controller boundary.

A UI toolkit's input component wraps itself in a FieldBinding: the binding
registers the field on mount, forwards change and blur events, and removes
the field on unmount. It also owns the value policy for checkable controls
(checkboxes and radio buttons): an unchecked control reports an empty value
whatever its value attribute says, so unchecked optional inputs don't fail
required-style rules.
"""

from typing import Any, Optional, Sequence

from .field_state import FieldSnapshot
from .form_controller import FormController

# Value reported by a checkable control that is not checked
UNCHECKED_VALUE = ""


def normalize_control_value(value: Any, checked: Optional[bool] = None) -> Any:
    """
    Return the value a control should report to the controller.

    Args:
        value: The control's value attribute
        checked: Checked state for checkbox/radio controls, None for others
    """
    if checked is False:
        return UNCHECKED_VALUE
    return value


def is_submit_disabled(controller: FormController) -> bool:
    """True while any field of the form holds an error."""
    return controller.has_errors()


class FieldBinding:
    """Connects one input control to a FormController."""

    def __init__(
        self,
        controller: FormController,
        name: str,
        rule_names: Sequence[str] = (),
        value: Any = None,
        checkable: bool = False,
        checked: bool = False,
    ):
        self.controller = controller
        self.name = name
        self.checkable = checkable
        self.checked = checked
        # The control's own value attribute; for checkables this is not
        # necessarily the value the controller sees
        self.raw_value = value

        self.state = controller.register_field(name, rule_names, self._reported_value())
        self.mounted = True

    def change(self, value: Any = None, checked: Optional[bool] = None) -> FieldSnapshot:
        """
        Forward a change event.

        For checkable controls pass the new checked state; value defaults to
        the control's value attribute.
        """
        if self.checkable:
            if checked is not None:
                self.checked = checked
            if value is not None:
                self.raw_value = value
        else:
            self.raw_value = value

        self.state = self.controller.on_value_change(self.name, self._reported_value())
        return self.state

    def blur(self) -> FieldSnapshot:
        self.state = self.controller.on_blur(self.name)
        return self.state

    def refresh(self) -> FieldSnapshot:
        """Re-read the field after validate/show_error/hide_error calls."""
        self.state = self.controller.get_field(self.name)
        return self.state

    def unmount(self) -> None:
        if self.mounted:
            self.controller.deregister_field(self.name)
            self.mounted = False

    def _reported_value(self) -> Any:
        if self.checkable:
            return normalize_control_value(self.raw_value, self.checked)
        return self.raw_value

    def __repr__(self) -> str:
        return f"FieldBinding(name={self.name!r}, checkable={self.checkable})"
