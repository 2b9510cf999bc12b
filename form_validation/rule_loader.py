"""
Rule Loader - Registering Rules Declared in Configuration

Turns the `rules` section of a config file into registry entries. Rules are
declared by reference, never by code in the config itself:

    rules:
      required:
        predicate: "myapp.rules:required"      # callable(value, field, form)
        hint: "myapp.rules:required_hint"      # callable(value)
      alpha:
        predicate: "myapp.rules:alpha"
        message: "Letters only"                # constant hint
      password_match:
        class: "myapp.rules:PasswordMatch"     # ValidationRule subclass

A reference is "<importable module>:<attribute path>". The module is imported
with importlib, so it must be on sys.path of the running process.

For `class` references, a ValidationRule subclass is instantiated with no
arguments and a ValidationRule instance is used as-is.
"""

import importlib
import logging
from typing import Any, Callable, Dict, List

from .errors import ConfigError
from .rule_registry import RuleEntry, RuleRegistry, ValidationRule

logger = logging.getLogger(__name__)


def _constant_hint(message: Any) -> Callable[[Any], Any]:
    def hint(value):
        return message

    return hint


class RuleLoader:
    """Resolves rule references and registers them"""

    def __init__(self):
        self.resolved = {}  # Cache: reference -> resolved attribute

    def load_into(
        self, registry: RuleRegistry, rules_config: Dict[str, Dict[str, Any]]
    ) -> List[str]:
        """
        Build and register every rule declared in rules_config.

        Args:
            registry: Registry to register into (existing names are replaced)
            rules_config: Rule name -> declaration dict

        Returns:
            Names of the registered rules, in declaration order

        Raises:
            ConfigError: If a reference cannot be resolved or has the wrong type
        """
        entries = {name: self.build_rule(name, decl) for name, decl in rules_config.items()}
        # Build everything first so a bad declaration leaves the registry untouched
        registry.register_many(entries)

        logger.info(
            f"Registered {len(entries)} configured rule(s)",
            extra={"rules": list(entries)},
        )
        return list(entries)

    def build_rule(self, name: str, declaration: Dict[str, Any]) -> ValidationRule:
        """
        Build one rule from its declaration.

        Args:
            name: Rule name (used in error messages)
            declaration: Dict with `class`, or `predicate` plus `hint`/`message`

        Returns:
            ValidationRule instance
        """
        if "class" in declaration:
            target = self.resolve(declaration["class"])
            if isinstance(target, type) and issubclass(target, ValidationRule):
                return target()
            if isinstance(target, ValidationRule):
                return target
            raise ConfigError(
                f"Rule '{name}': {declaration['class']} is not a ValidationRule "
                f"subclass or instance"
            )

        if "predicate" not in declaration:
            raise ConfigError(f"Rule '{name}' needs either 'class' or 'predicate'")

        predicate = self._resolve_callable(name, declaration["predicate"])
        if "hint" in declaration:
            hint = self._resolve_callable(name, declaration["hint"])
        elif "message" in declaration:
            hint = _constant_hint(declaration["message"])
        else:
            raise ConfigError(f"Rule '{name}' needs either 'hint' or 'message'")

        return RuleEntry(predicate, hint, declaration.get("description", ""))

    def resolve(self, reference: str) -> Any:
        """
        Import the object named by "<module>:<attribute path>".

        Raises:
            ConfigError: If the module or attribute does not exist
        """
        if reference in self.resolved:
            return self.resolved[reference]

        module_name, sep, attr_path = reference.partition(":")
        if not sep or not module_name or not attr_path:
            raise ConfigError(
                f"Invalid rule reference '{reference}', expected 'module:attribute'"
            )

        try:
            target = importlib.import_module(module_name)
        except ImportError as e:
            raise ConfigError(f"Failed to import module for '{reference}': {e}") from e

        for part in attr_path.split("."):
            try:
                target = getattr(target, part)
            except AttributeError:
                raise ConfigError(
                    f"'{module_name}' has no attribute '{attr_path}' (from '{reference}')"
                ) from None

        self.resolved[reference] = target
        return target

    def _resolve_callable(self, name: str, reference: str) -> Callable:
        target = self.resolve(reference)
        if not callable(target):
            raise ConfigError(f"Rule '{name}': {reference} is not callable")
        return target
