"""Configuration loading: YAML rule and form declarations with URI fetching and caching."""

import os
import time
import yaml
import hashlib
import logging
import urllib.request
import urllib.parse
from pathlib import Path
from typing import Dict, Any, Optional
from importlib.resources import files

from jsonschema import validate, ValidationError

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Environment variable consulted when no config URI is passed explicitly
CONFIG_ENV_VAR = "FORM_VALIDATION_CONFIG"

_REFERENCE = {"type": "string", "pattern": r"^[A-Za-z_][\w.]*:[A-Za-z_][\w.]*$"}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "rules": {
            "type": ["object", "null"],
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "class": _REFERENCE,
                    "predicate": _REFERENCE,
                    "hint": _REFERENCE,
                    "message": {},
                    "description": {"type": "string"},
                },
                "additionalProperties": False,
                "oneOf": [
                    {"required": ["class"], "not": {"anyOf": [
                        {"required": ["predicate"]},
                        {"required": ["hint"]},
                        {"required": ["message"]},
                    ]}},
                    {"required": ["predicate", "hint"], "not": {"anyOf": [
                        {"required": ["class"]},
                        {"required": ["message"]},
                    ]}},
                    {"required": ["predicate", "message"], "not": {"anyOf": [
                        {"required": ["class"]},
                        {"required": ["hint"]},
                    ]}},
                ],
            },
        },
        "forms": {
            "type": ["object", "null"],
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "description": {"type": "string"},
                    "fields": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string", "minLength": 1},
                                "validations": {
                                    "type": "array",
                                    "items": {"type": "string", "minLength": 1},
                                },
                                "value": {},
                            },
                            "required": ["name"],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["fields"],
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}


class ConfigLoader:
    """Loads and checks the rule/form configuration file."""

    # Cache directory for configs fetched over http(s)
    CACHE_DIR = Path.home() / ".cache" / "form-validation-lib"

    def __init__(self, config_uri: Optional[str] = None, refresh: bool = False):
        """
        Load configuration.

        Resolution order:
        1. config_uri argument
        2. FORM_VALIDATION_CONFIG environment variable
        3. Bundled local-config.yaml (declares no rules and no forms)

        Args:
            config_uri: Path, file:// URI or http(s):// URI of a YAML config
            refresh: Fetch http(s) configs again even when a cached copy
                exists, and overwrite the cache with the fresh content

        Raises:
            ConfigError: If the config cannot be read or fails schema checks
        """
        self.cache_dir = self.CACHE_DIR
        self.refresh = refresh
        self.config_uri = config_uri or os.environ.get(CONFIG_ENV_VAR)

        if self.config_uri:
            config = self._load_config_from_uri(self.config_uri)
        else:
            bundled = files("form_validation").joinpath("local-config.yaml")
            self.config_uri = str(bundled)
            with bundled.open("r") as f:
                config = yaml.safe_load(f)

        self.config = self._check(config)
        self.config_loaded_at = time.time()

        logger.info(
            "Form validation config loaded",
            extra={
                "config_uri": self.config_uri,
                "rules": len(self.config["rules"]),
                "forms": len(self.config["forms"]),
            },
        )

    def _check(self, config: Any) -> Dict[str, Any]:
        """Validate config against CONFIG_SCHEMA and normalise empty sections."""
        if config is None:
            config = {}

        try:
            validate(instance=config, schema=CONFIG_SCHEMA)
        except ValidationError as e:
            location = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise ConfigError(
                f"Invalid config {self.config_uri} at {location}: {e.message}"
            ) from e

        config["rules"] = config.get("rules") or {}
        config["forms"] = config.get("forms") or {}
        return config

    def _load_yaml(self, path: str) -> Any:
        """Load YAML file from disk."""
        try:
            with open(path) as f:
                return yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    def _load_config_from_uri(self, uri: str) -> Any:
        """
        Load config from URI (with caching for remote files).

        Supports:
        - Plain paths, absolute or relative to the working directory
        - file:// - Local filesystem
        - https:// / http:// - Remote, cached under CACHE_DIR

        Args:
            uri: Config URI or path

        Returns:
            Parsed YAML content
        """
        parsed = urllib.parse.urlparse(uri)

        # Windows drive letters parse as a one-letter scheme
        if not parsed.scheme or len(parsed.scheme) == 1:
            return self._load_yaml(os.path.abspath(uri))

        if parsed.scheme == "file":
            return self._load_yaml(urllib.parse.unquote(parsed.path))

        if parsed.scheme in ("http", "https"):
            cache_key = hashlib.sha256(uri.encode()).hexdigest()
            cache_path = self.cache_dir / f"config_{cache_key}.yaml"

            if cache_path.exists() and not self.refresh:
                logger.debug(f"Using cached config {cache_path}", extra={"uri": uri})
                return self._load_yaml(str(cache_path))

            content = self._fetch_uri(uri)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_path.write_text(content)
            try:
                return yaml.safe_load(content)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML fetched from {uri}: {e}") from e

        raise ConfigError(f"Unsupported URI scheme: {parsed.scheme} in {uri}")

    def _fetch_uri(self, uri: str) -> str:
        """Fetch content from HTTP/HTTPS URI."""
        try:
            with urllib.request.urlopen(uri) as response:
                return response.read().decode("utf-8")
        except Exception as e:
            raise ConfigError(f"Failed to fetch config from {uri}: {e}") from e

    def get_config(self) -> Dict[str, Any]:
        return self.config

    def get_rules_config(self) -> Dict[str, Dict[str, Any]]:
        """Get rule declarations (rule name -> declaration)."""
        return self.config["rules"]

    def get_forms_config(self) -> Dict[str, Dict[str, Any]]:
        """Get form declarations (form name -> {fields: [...]})."""
        return self.config["forms"]

    def get_form_config(self, form_name: str) -> Dict[str, Any]:
        """
        Get a single form declaration.

        Raises:
            ConfigError: If the form is not declared
        """
        forms = self.get_forms_config()
        if form_name not in forms:
            raise ConfigError(
                f"Form '{form_name}' not found in config. "
                f"Available forms: {', '.join(forms) or '(none)'}"
            )
        return forms[form_name]

    def get_config_age(self) -> Optional[float]:
        """
        Get age of the loaded config in seconds.

        Returns:
            Age in seconds, or None if not loaded
        """
        if hasattr(self, "config_loaded_at"):
            return time.time() - self.config_loaded_at
        return None
