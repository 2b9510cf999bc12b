"""
Public API for form-validation-lib

This is the "front door" for applications that declare their rules and forms
in a config file instead of wiring a RuleRegistry by hand.
"""

import logging
from typing import Optional

from .config_loader import ConfigLoader
from .form_controller import FormController
from .rule_loader import RuleLoader
from .rule_registry import RuleRegistry

logger = logging.getLogger(__name__)


class FormValidationService:
    """
    Main service class.

    Loads the config, registers the configured rules into a registry, and
    creates FormControllers for configured (or ad hoc) forms. Every form the
    service creates shares its registry.

    Example:
        from form_validation import FormValidationService

        service = FormValidationService("forms.yaml")
        form = service.create_form("signup")

        form.on_value_change("username", "ada")
        failures = form.validate_all()
        if not failures:
            submit(...)
    """

    def __init__(self, config_uri: Optional[str] = None, registry: Optional[RuleRegistry] = None):
        """
        Initialize the service.

        Args:
            config_uri: Config location (see ConfigLoader). Defaults to
                FORM_VALIDATION_CONFIG or the bundled empty config.
            registry: Registry to populate. A new empty registry is created
                when omitted; pass one to mix configured rules with rules
                registered in code.

        Raises:
            ConfigError: If the config or a rule reference is invalid
        """
        self.registry = registry if registry is not None else RuleRegistry()
        self._config_uri = config_uri
        self._initialize()

    def _initialize(self, refresh=False):
        """Internal initialization logic (used by __init__ and reload_rules)."""
        self.config_loader = ConfigLoader(self._config_uri, refresh=refresh)
        self.rule_loader = RuleLoader()
        self.rule_loader.load_into(self.registry, self.config_loader.get_rules_config())

    def create_form(self, form_name=None):
        """
        Create a FormController.

        Args:
            form_name: Name of a form declared in the config. Its fields are
                registered in declaration order. None creates an empty form.

        Returns:
            FormController bound to the service registry

        Raises:
            ConfigError: If form_name is not declared in the config
        """
        form = FormController(self.registry)
        if form_name is None:
            return form

        form_config = self.config_loader.get_form_config(form_name)
        for field in form_config["fields"]:
            form.register_field(
                field["name"],
                field.get("validations", []),
                field.get("value"),
            )

        logger.debug(
            f"Created form '{form_name}' with {len(form)} field(s)",
            extra={"form": form_name},
        )
        return form

    def discover_rules(self):
        """
        Describe every registered rule.

        Returns:
            Dict mapping rule name to {"name", "description"}
        """
        return {
            name: {
                "name": name,
                "description": self.registry.lookup(name).description(),
            }
            for name in self.registry.names()
        }

    def discover_forms(self):
        """
        Describe every form declared in the config.

        Returns:
            Dict mapping form name to {"description", "fields"} where fields
            is a list of {"name", "validations", "value"}
        """
        result = {}
        for form_name, form_config in self.config_loader.get_forms_config().items():
            result[form_name] = {
                "description": form_config.get("description", ""),
                "fields": [
                    {
                        "name": field["name"],
                        "validations": list(field.get("validations", [])),
                        "value": field.get("value"),
                    }
                    for field in form_config["fields"]
                ],
            }
        return result

    def reload_rules(self):
        """
        Re-read the config and re-register its rules.

        Remote (http/https) configs are fetched again rather than served from
        the local cache, and the cache is rewritten with the fresh copy.

        Rules are replaced in the shared registry (last write wins), so forms
        created earlier pick up the new definitions on their next evaluation.
        Errors already stored on fields are not recomputed. Rules that were
        removed from the config stay registered.
        """
        logger.info("Reloading form validation config", extra={"config_uri": self._config_uri})
        self._initialize(refresh=True)

    def get_config_age(self):
        """
        Get age of the loaded config in seconds.

        Returns:
            Age in seconds, or None if not loaded
        """
        return self.config_loader.get_config_age()
