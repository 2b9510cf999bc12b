"""Exception taxonomy for form-validation-lib."""


class FormValidationError(Exception):
    """Base class for all errors raised by form-validation-lib."""


class UnknownRuleError(FormValidationError, LookupError):
    """A field references a rule name that is not in the registry."""

    def __init__(self, rule_name: str):
        super().__init__(
            f"Unknown rule '{rule_name}'. "
            f"Register it with RuleRegistry.register() before validating."
        )
        self.rule_name = rule_name


class UnknownFieldError(FormValidationError, LookupError):
    """An operation referenced a field that is not currently registered."""

    def __init__(self, field_name: str):
        super().__init__(f"Field not registered: '{field_name}'")
        self.field_name = field_name


class DuplicateFieldError(FormValidationError, ValueError):
    """A field name is empty or already registered in the same form."""

    def __init__(self, field_name: str, message: str = None):
        super().__init__(message or f"Field already registered: '{field_name}'")
        self.field_name = field_name


class ConfigError(FormValidationError, ValueError):
    """Configuration file or rule reference could not be used."""
