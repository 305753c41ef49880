"""
Structured logging of errors answered over HTTP.
"""

from typing import Dict, Any, Optional

from .error_types import ErrorType, ErrorContext
from ..logging import logger


class ErrorLogger:
    """Writes one log record per error response, tagged with the request context."""

    @staticmethod
    def log_error(
        error_type: ErrorType,
        context: ErrorContext,
        status_code: int,
        cause: Optional[Exception] = None,
        detail: Optional[Dict[str, Any]] = None
    ):
        """
        Log an error response.

        Statuses below 500 are caller mistakes and go out as warnings; the
        rest are errors, with the traceback of ``cause`` when there is one.
        """
        fields = context.to_log_extra()
        fields.update(error_code=error_type.code, http_status_code=status_code)
        if detail is not None:
            fields["error_detail"] = detail
        if cause is not None:
            fields["cause_type"] = type(cause).__name__
            fields["cause"] = str(cause)

        message = f"[{error_type.code}] {error_type.format_message(**context.format_fields())}"
        if status_code < 500:
            logger.warning(message, **fields)
        else:
            logger.error(message, exc_info=cause is not None, **fields)

    @staticmethod
    def log_upstream_error(
        provider_name: str,
        status_code: int,
        payload: Any,
        context: ErrorContext
    ):
        """Log an upstream rejection together with the payload the provider sent."""
        fields = context.to_log_extra()
        fields.update(
            provider_name=provider_name,
            error_code="upstream_http_error",
            upstream_status_code=status_code,
            upstream_payload=payload,
        )
        logger.error(f"{provider_name} rejected the request with status {status_code}: {payload}", exc_info=False, **fields)
