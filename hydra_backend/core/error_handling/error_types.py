"""
Error codes and request context for Hydra error responses.

Every failure answered over HTTP carries the same body:

    {"error": {"message": "...", "code": "..."}}

``ErrorType`` pairs each code with its HTTP status and a message template;
``ErrorContext`` carries the request details that fill the template and tag
the log record.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional
from fastapi import status


class _TemplateFields(dict):
    """Leaves unknown placeholders in place instead of failing the format."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class ErrorType(Enum):
    """Error codes of the Hydra API: (code, HTTP status, message template)."""

    # Client errors
    INVALID_REQUEST_FORMAT = ("invalid_request_format", 422, "Invalid request format: {error_details}")
    CREDENTIAL_NOT_CONFIGURED = ("credential_not_configured", status.HTTP_400_BAD_REQUEST, "{credential_name} not configured")
    SESSION_NOT_FOUND = ("session_not_found", status.HTTP_404_NOT_FOUND, "Session '{session_id}' not found")

    # Our own failures
    INTERNAL_SERVER_ERROR = ("internal_server_error", status.HTTP_500_INTERNAL_SERVER_ERROR, "Unexpected failure: {error_details}")

    # Upstream failures; a rejection takes its status from the upstream answer
    UPSTREAM_UNREACHABLE = ("upstream_unreachable", status.HTTP_502_BAD_GATEWAY, "Failed to reach {provider_name} API: {error_details}")
    UPSTREAM_TIMEOUT = ("upstream_timeout", status.HTTP_504_GATEWAY_TIMEOUT, "Timed out waiting for {provider_name} API: {error_details}")
    UPSTREAM_INVALID_RESPONSE = ("upstream_invalid_response", status.HTTP_502_BAD_GATEWAY, "Invalid response from {provider_name} API: {error_details}")
    UPSTREAM_HTTP_ERROR = ("upstream_http_error", None, "{provider_name} API returned status {upstream_status}")

    def __init__(self, code: str, status_code: Optional[int], message_template: str):
        self.code = code
        self.status_code = status_code
        self.message_template = message_template

    def format_message(self, **fields) -> str:
        return self.message_template.format_map(_TemplateFields(fields))

    def create_error_detail(self, **fields) -> Dict[str, Any]:
        return {"error": {"message": self.format_message(**fields), "code": self.code}}


@dataclass
class ErrorContext:
    """
    Request details attached to an error.

    Attributes:
        request_id: id assigned by the request middleware
        model_id: model the request targeted
        session_id: session the request addressed
        provider_name: upstream provider involved
        extra: further template fields and log fields
    """
    request_id: Optional[str] = None
    model_id: Optional[str] = None
    session_id: Optional[str] = None
    provider_name: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def _known_fields(self) -> Dict[str, Any]:
        return {
            "request_id": self.request_id,
            "model_id": self.model_id,
            "session_id": self.session_id,
            "provider_name": self.provider_name,
        }

    def format_fields(self) -> Dict[str, Any]:
        """Values available to message templates."""
        return {**self._known_fields(), **self.extra}

    def to_log_extra(self) -> Dict[str, Any]:
        """Fields attached to the error log record; empty values are left out."""
        log_extra: Dict[str, Any] = {"log_type": "error"}
        log_extra.update({key: value for key, value in self._known_fields().items() if value})
        log_extra.update(self.extra)
        return log_extra
