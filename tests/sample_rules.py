"""
Rules used by the test suite.

Config files written by the tests reference these as "sample_rules:<name>";
pytest puts the tests/ directory on sys.path, so the module is importable.
"""

import re

from form_validation import ValidationRule

_LETTERS = re.compile(r"[A-Za-z]+")


def required(value, field, form):
    if value is None:
        return False
    return bool(str(value).strip())


def required_hint(value):
    return "This field is required"


def alpha(value, field, form):
    return isinstance(value, str) and _LETTERS.fullmatch(value) is not None


def alpha_hint(value):
    return f"'{value}' must contain letters only"


class PasswordMatch(ValidationRule):
    """Password and confirmation must match once both have been filled in."""

    def check(self, value, field, form):
        password = form["password"]
        confirm = form["passwordConfirm"]

        if not (password.is_used and confirm.is_used):
            return True
        if not (password.is_changed and confirm.is_changed):
            return True
        return password.value == confirm.value

    def hint(self, value):
        return "Passwords do not match"

    def description(self):
        return "Password confirmation must equal password"


NOT_A_RULE = 42
