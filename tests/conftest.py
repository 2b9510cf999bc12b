"""Shared fixtures."""

import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

import sample_rules
from form_validation import FormController, RuleEntry, RuleRegistry
from form_validation.config_loader import ConfigLoader


@pytest.fixture
def registry():
    """Registry with required, alpha and password_match rules."""
    registry = RuleRegistry()
    registry.register(
        "required", RuleEntry(sample_rules.required, sample_rules.required_hint)
    )
    registry.register("alpha", RuleEntry(sample_rules.alpha, sample_rules.alpha_hint))
    registry.register("password_match", sample_rules.PasswordMatch())
    return registry


@pytest.fixture
def form(registry):
    """Empty form bound to the sample registry."""
    return FormController(registry)


@pytest.fixture
def config_file(tmp_path):
    """Config declaring the sample rules and a signup form."""
    path = tmp_path / "forms.yaml"
    path.write_text(
        """
rules:
  required:
    predicate: "sample_rules:required"
    hint: "sample_rules:required_hint"
    description: "Value must not be blank"
  alpha:
    predicate: "sample_rules:alpha"
    message: "Letters only"
  password_match:
    class: "sample_rules:PasswordMatch"
forms:
  signup:
    description: "Account creation"
    fields:
      - name: username
        validations: [required, alpha]
        value: ""
      - name: password
        validations: [required, password_match]
      - name: passwordConfirm
        validations: [required, password_match]
      - name: newsletter
"""
    )
    return path


class _ConfigHandler(BaseHTTPRequestHandler):
    """Serves server.documents[path] as YAML, 404 for anything else."""

    def do_GET(self):
        body = self.server.documents.get(self.path)
        if body is None:
            self.send_error(404)
            return
        data = body.encode("utf-8")
        self.server.hits.append(self.path)
        self.send_response(200)
        self.send_header("Content-Type", "application/x-yaml")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format, *args):
        pass


@pytest.fixture
def config_server(tmp_path, monkeypatch):
    """
    Local HTTP server for remote configs.

    Set server.documents["/forms.yaml"] to publish a config; every
    successful GET is recorded in server.hits. The http cache is redirected
    into tmp_path.
    """
    monkeypatch.setattr(ConfigLoader, "CACHE_DIR", tmp_path / "cache")
    for var in ("http_proxy", "HTTP_PROXY", "https_proxy", "HTTPS_PROXY"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("no_proxy", "*")
    monkeypatch.setenv("NO_PROXY", "*")

    server = HTTPServer(("127.0.0.1", 0), _ConfigHandler)
    server.documents = {}
    server.hits = []
    server.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    yield server

    server.shutdown()
    server.server_close()
    thread.join()
