#!/usr/bin/env python3
"""
JSON-RPC 2.0 Server for FormValidationService

Lets a UI written in any language drive the validation engine: the UI's field
components send register/change/blur events and the server answers with the
updated field state to render.

Protocol: JSON-RPC 2.0 over stdin/stdout (newline-delimited JSON)
Specification: https://www.jsonrpc.org/specification

Usage:
    python -m form_validation.jsonrpc_server [--config forms.yaml] [--debug]

Example session (stdin):
    {"jsonrpc":"2.0","id":1,"method":"create_form","params":{"form_name":"signup"}}
    {"jsonrpc":"2.0","id":2,"method":"value_change","params":{"form_id":"form-1","name":"username","value":""}}
    {"jsonrpc":"2.0","id":3,"method":"validate_all","params":{"form_id":"form-1"}}

Example response (stdout):
    {"jsonrpc":"2.0","id":3,"result":{"valid":false,"failures":{"username":"required"}}}

Hints are sent as-is, so configured hint producers should return
JSON-serializable values. Anything else is sent as its str().
"""

import sys
import json
import signal
import logging
import argparse
import itertools
from typing import Any, Dict, Optional

from form_validation import FormValidationService
from form_validation.errors import FormValidationError

logger = logging.getLogger(__name__)


class InvalidParamsError(ValueError):
    """Request params are missing or reference an unknown form."""


class FormValidationJsonRpcServer:
    """JSON-RPC 2.0 server wrapping FormValidationService and its forms."""

    # JSON-RPC error codes
    ERROR_PARSE = -32700        # Invalid JSON
    ERROR_INVALID_REQUEST = -32600  # Invalid JSON-RPC structure
    ERROR_METHOD_NOT_FOUND = -32601  # Unknown method
    ERROR_INVALID_PARAMS = -32602   # Invalid parameters
    ERROR_INTERNAL = -32000      # Application error (catch-all)
    ERROR_VALIDATION = -32001    # Unknown rule/field, duplicate field, bad config

    def __init__(self, config_uri: Optional[str] = None, debug: bool = False):
        """
        Initialize JSON-RPC server.

        Args:
            config_uri: Config location passed to FormValidationService
            debug: Log every request and response at DEBUG level
        """
        self.service = FormValidationService(config_uri)
        self.forms = {}
        self._form_ids = itertools.count(1)
        self.running = False
        self.debug = debug

        # Method dispatch table
        self.methods = {
            'create_form': self._handle_create_form,
            'close_form': self._handle_close_form,
            'register_field': self._handle_register_field,
            'deregister_field': self._handle_deregister_field,
            'value_change': self._handle_value_change,
            'blur': self._handle_blur,
            'validate': self._handle_validate,
            'validate_all': self._handle_validate_all,
            'show_error': self._handle_show_error,
            'hide_error': self._handle_hide_error,
            'get_field': self._handle_get_field,
            'discover_rules': self._handle_discover_rules,
            'discover_forms': self._handle_discover_forms,
            'reload_rules': self._handle_reload_rules,
        }

    def _log(self, message: str):
        """Log debug message (stdout is reserved for JSON-RPC traffic)."""
        if self.debug:
            logger.debug(message)

    def start_server(self):
        """
        Start the JSON-RPC server loop.

        Reads requests from stdin, processes them, writes responses to stdout.
        Runs until EOF or stop signal received.
        """
        self.running = True
        self._log("FormValidationService JSON-RPC server started")

        while self.running:
            try:
                line = sys.stdin.readline()

                if not line:
                    # EOF - clean shutdown
                    self._log("EOF received, shutting down")
                    break

                if not line.strip():
                    continue

                self._log(f"Received: {line.strip()}")
                response = self.handle_request(line)
                self._send_response(response)

            except KeyboardInterrupt:
                self._log("KeyboardInterrupt received, shutting down")
                break

        self._log("Server stopped")

    def stop_server(self):
        """
        Stop the server gracefully.

        Sets running flag to False, causing the main loop to exit.
        """
        self.running = False
        self._log("Stop signal received")

    def handle_request(self, request_json: str) -> Dict[str, Any]:
        """
        Parse and process a JSON-RPC request.

        Args:
            request_json: JSON-RPC request string

        Returns:
            JSON-RPC response dict (success or error)
        """
        request_id = None

        try:
            try:
                request = json.loads(request_json)
            except json.JSONDecodeError as e:
                return self._error_response(None, self.ERROR_PARSE,
                                            f"Parse error: {e}")

            if not isinstance(request, dict):
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                            "Request must be a JSON object")

            if request.get("jsonrpc") != "2.0":
                return self._error_response(None, self.ERROR_INVALID_REQUEST,
                                            f"Invalid JSON-RPC version: {request.get('jsonrpc')}")

            request_id = request.get("id")
            method = request.get("method")
            params = request.get("params", {})

            if not method:
                return self._error_response(request_id, self.ERROR_INVALID_REQUEST,
                                            "Missing 'method' field")

            if not isinstance(params, dict):
                return self._error_response(request_id, self.ERROR_INVALID_PARAMS,
                                            f"Params must be an object, got {type(params).__name__}")

            if method not in self.methods:
                return self._error_response(request_id, self.ERROR_METHOD_NOT_FOUND,
                                            f"Method not found: {method}")

            self._log(f"Dispatching method: {method}")
            result = self.methods[method](params)

            return self._success_response(request_id, result)

        except InvalidParamsError as e:
            return self._error_response(request_id, self.ERROR_INVALID_PARAMS, str(e))

        except FormValidationError as e:
            return self._error_response(request_id, self.ERROR_VALIDATION, str(e),
                                        {"type": type(e).__name__})

        except Exception as e:
            # Rule authoring bugs (throwing predicates/hints) end up here
            logger.exception(f"Error processing request {request_id}")
            return self._error_response(request_id, self.ERROR_INTERNAL,
                                        f"Internal error: {e}")

    # Parameter helpers

    def _require(self, params: Dict[str, Any], name: str) -> Any:
        if name not in params or params[name] in (None, ""):
            raise InvalidParamsError(f"Missing required parameter: {name}")
        return params[name]

    def _form(self, params: Dict[str, Any]):
        form_id = self._require(params, 'form_id')
        if form_id not in self.forms:
            raise InvalidParamsError(f"Unknown form_id: {form_id}")
        return self.forms[form_id]

    # Method handlers - wrap FormValidationService / FormController

    def _handle_create_form(self, params: Dict[str, Any]) -> Any:
        """Handle 'create_form' method."""
        form = self.service.create_form(params.get('form_name'))
        form_id = f"form-{next(self._form_ids)}"
        self.forms[form_id] = form
        return {
            "form_id": form_id,
            "fields": [field.to_dict() for field in form.fields()],
        }

    def _handle_close_form(self, params: Dict[str, Any]) -> Any:
        """Handle 'close_form' method."""
        self._form(params)
        del self.forms[params['form_id']]
        return {"status": "ok"}

    def _handle_register_field(self, params: Dict[str, Any]) -> Any:
        """Handle 'register_field' method."""
        form = self._form(params)
        name = self._require(params, 'name')
        validations = params.get('validations') or []
        if not isinstance(validations, list):
            raise InvalidParamsError("Parameter 'validations' must be a list")
        return form.register_field(name, validations, params.get('value')).to_dict()

    def _handle_deregister_field(self, params: Dict[str, Any]) -> Any:
        """Handle 'deregister_field' method."""
        form = self._form(params)
        form.deregister_field(self._require(params, 'name'))
        return {"status": "ok"}

    def _handle_value_change(self, params: Dict[str, Any]) -> Any:
        """Handle 'value_change' method."""
        form = self._form(params)
        name = self._require(params, 'name')
        # An empty value is legitimate here, only absence is an error
        if 'value' not in params:
            raise InvalidParamsError("Missing required parameter: value")
        return form.on_value_change(name, params['value']).to_dict()

    def _handle_blur(self, params: Dict[str, Any]) -> Any:
        """Handle 'blur' method."""
        form = self._form(params)
        return form.on_blur(self._require(params, 'name')).to_dict()

    def _handle_validate(self, params: Dict[str, Any]) -> Any:
        """Handle 'validate' method."""
        form = self._form(params)
        name = self._require(params, 'name')
        result = form.validate(name)
        return {
            "valid": result.is_valid,
            "rule_name": result.rule_name,
            "field": form.get_field(name).to_dict(),
        }

    def _handle_validate_all(self, params: Dict[str, Any]) -> Any:
        """Handle 'validate_all' method."""
        failures = self._form(params).validate_all()
        return {"valid": not failures, "failures": failures}

    def _handle_show_error(self, params: Dict[str, Any]) -> Any:
        """Handle 'show_error' method."""
        form = self._form(params)
        name = self._require(params, 'name')
        if 'hint' in params:
            return form.show_error(name, params['hint']).to_dict()
        return form.show_error(name).to_dict()

    def _handle_hide_error(self, params: Dict[str, Any]) -> Any:
        """Handle 'hide_error' method."""
        form = self._form(params)
        return form.hide_error(self._require(params, 'name')).to_dict()

    def _handle_get_field(self, params: Dict[str, Any]) -> Any:
        """Handle 'get_field' method."""
        form = self._form(params)
        return form.get_field(self._require(params, 'name')).to_dict()

    def _handle_discover_rules(self, params: Dict[str, Any]) -> Any:
        """Handle 'discover_rules' method."""
        return self.service.discover_rules()

    def _handle_discover_forms(self, params: Dict[str, Any]) -> Any:
        """Handle 'discover_forms' method."""
        return self.service.discover_forms()

    def _handle_reload_rules(self, params: Dict[str, Any]) -> Any:
        """Handle 'reload_rules' method."""
        self.service.reload_rules()
        return {"status": "ok", "message": "Rules reloaded successfully"}

    # Response formatting

    def _success_response(self, request_id: Any, result: Any) -> Dict[str, Any]:
        """Format successful JSON-RPC response."""
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        }

    def _error_response(self, request_id: Any, code: int, message: str,
                        data: Optional[Any] = None) -> Dict[str, Any]:
        """Format JSON-RPC error response."""
        error = {
            "code": code,
            "message": message
        }
        if data is not None:
            error["data"] = data

        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": error
        }

    def _send_response(self, response: Dict[str, Any]):
        """Send JSON-RPC response to stdout."""
        response_json = json.dumps(response, default=str)
        self._log(f"Sending: {response_json}")
        sys.stdout.write(response_json + "\n")
        sys.stdout.flush()


def main():
    """Main entry point for JSON-RPC server."""
    parser = argparse.ArgumentParser(
        description="FormValidationService JSON-RPC 2.0 Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  python -m form_validation.jsonrpc_server --config forms.yaml
  python -m form_validation.jsonrpc_server --config forms.yaml --debug

Supported methods:
  - create_form, close_form
  - register_field, deregister_field
  - value_change, blur
  - validate, validate_all
  - show_error, hide_error, get_field
  - discover_rules, discover_forms, reload_rules

Protocol: JSON-RPC 2.0 over stdin/stdout
See: https://www.jsonrpc.org/specification
        """
    )
    parser.add_argument('--config', default=None,
                        help='Config file path or URI (default: $FORM_VALIDATION_CONFIG)')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging to stderr')

    args = parser.parse_args()

    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    server = FormValidationJsonRpcServer(config_uri=args.config, debug=args.debug)

    # Handle signals for graceful shutdown
    def signal_handler(sig, frame):
        server.stop_server()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    # Start server (blocks until stopped)
    server.start_server()


if __name__ == "__main__":
    main()
