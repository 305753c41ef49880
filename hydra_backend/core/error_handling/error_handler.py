"""
HTTP error construction.

Every handled failure leaves the app as a ``fastapi.HTTPException`` whose
detail is the standard ``{"error": {...}}`` body, logged once on creation.
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException, status

from .error_types import ErrorType, ErrorContext
from .error_logger import ErrorLogger
from ..exceptions import (
    UpstreamError,
    UpstreamAPIError,
    UpstreamTimeoutError,
    UpstreamConnectionError,
    UpstreamInvalidResponseError,
)


# Checked in order: a timeout is also a connection error
UPSTREAM_ERROR_TYPES = (
    (UpstreamTimeoutError, ErrorType.UPSTREAM_TIMEOUT),
    (UpstreamConnectionError, ErrorType.UPSTREAM_UNREACHABLE),
    (UpstreamInvalidResponseError, ErrorType.UPSTREAM_INVALID_RESPONSE),
)


class ErrorHandler:
    """Factories for the HTTP errors the Hydra API answers with."""

    @staticmethod
    def create_http_exception(
        error_type: ErrorType,
        context: Optional[ErrorContext] = None,
        status_code: Optional[int] = None,
        cause: Optional[Exception] = None,
        log: bool = True,
        **fields
    ) -> HTTPException:
        """
        Build the HTTPException for ``error_type``.

        Args:
            error_type: error code, default status and message template
            context: request details; ``fields`` are merged into its extras
            status_code: overrides the error type's status
            cause: exception that led to the error, logged with its traceback
            log: set to False when the caller logs the error itself
        """
        context = context or ErrorContext()
        context.extra.update(fields)

        detail = error_type.create_error_detail(**context.format_fields())
        response_status = status_code or error_type.status_code or status.HTTP_502_BAD_GATEWAY

        if log:
            ErrorLogger.log_error(error_type, context, response_status, cause=cause, detail=detail)
        return HTTPException(status_code=response_status, detail=detail)

    @staticmethod
    def handle_invalid_request(error_details: str, context: Optional[ErrorContext] = None) -> HTTPException:
        return ErrorHandler.create_http_exception(ErrorType.INVALID_REQUEST_FORMAT, context, error_details=error_details)

    @staticmethod
    def handle_credential_not_configured(credential_name: str, context: ErrorContext) -> HTTPException:
        return ErrorHandler.create_http_exception(
            ErrorType.CREDENTIAL_NOT_CONFIGURED, context, credential_name=credential_name
        )

    @staticmethod
    def handle_session_not_found(session_id: str, context: ErrorContext) -> HTTPException:
        context.session_id = session_id
        return ErrorHandler.create_http_exception(ErrorType.SESSION_NOT_FOUND, context)

    @staticmethod
    def handle_upstream_error(error: UpstreamError, context: ErrorContext) -> HTTPException:
        """Map an upstream client failure to a gateway-type HTTPException."""
        context.provider_name = error.provider_name

        if isinstance(error, UpstreamAPIError):
            return ErrorHandler.handle_upstream_http_error(error, context)

        for exception_class, error_type in UPSTREAM_ERROR_TYPES:
            if isinstance(error, exception_class):
                return ErrorHandler.create_http_exception(
                    error_type,
                    context,
                    cause=error.original_exception or error,
                    error_details=error.message,
                )
        return ErrorHandler.handle_internal_server_error(error.message, context, error)

    @staticmethod
    def handle_upstream_http_error(error: UpstreamAPIError, context: ErrorContext) -> HTTPException:
        """
        Handle an upstream rejection.

        An upstream 4xx/5xx is passed through as the response status (anything
        else becomes 502); the decoded upstream payload rides along under
        ``error.upstream``.
        """
        upstream_status = error.status_code
        passthrough = 400 <= upstream_status <= 599

        ErrorLogger.log_upstream_error(error.provider_name, upstream_status, error.payload, context)

        exception = ErrorHandler.create_http_exception(
            ErrorType.UPSTREAM_HTTP_ERROR,
            context,
            status_code=upstream_status if passthrough else status.HTTP_502_BAD_GATEWAY,
            log=False,
            upstream_status=upstream_status,
        )
        exception.detail["error"].update(
            code=f"upstream_http_error_{upstream_status}",
            upstream=error.payload,
        )
        return exception

    @staticmethod
    def handle_internal_server_error(
        error_details: str,
        context: ErrorContext,
        cause: Optional[Exception] = None
    ) -> HTTPException:
        return ErrorHandler.create_http_exception(
            ErrorType.INTERNAL_SERVER_ERROR, context, cause=cause, error_details=error_details
        )

    @staticmethod
    def error_body(exception: HTTPException) -> Dict[str, Any]:
        """JSON body for an HTTPException raised anywhere in the app, including routing 404s."""
        detail = exception.detail
        if isinstance(detail, dict) and "error" in detail:
            return detail
        return {"error": {"message": str(detail), "code": f"http_{exception.status_code}"}}
