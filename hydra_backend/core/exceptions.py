from typing import Any, Optional

from .logging import logger


class UpstreamError(Exception):
    """Base class for failures talking to the upstream provider."""

    def __init__(self, message: str, provider_name: str = "anthropic", original_exception: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.provider_name = provider_name
        self.original_exception = original_exception


class UpstreamAPIError(UpstreamError):
    """The provider answered with a non-success status."""

    def __init__(self, status_code: int, payload: Any = None, provider_name: str = "anthropic"):
        super().__init__(f"Provider API error: {status_code}", provider_name=provider_name)
        self.status_code = status_code
        self.payload = payload

        logger.debug("Upstream API error created", exception={
            "type": "UpstreamAPIError",
            "status_code": status_code,
            "has_payload": payload is not None,
        })


class UpstreamConnectionError(UpstreamError):
    """The provider could not be reached."""


class UpstreamTimeoutError(UpstreamConnectionError):
    """The provider did not respond within the timeout budget."""


class UpstreamInvalidResponseError(UpstreamError):
    """The provider answered with a success status but an undecodable body."""
