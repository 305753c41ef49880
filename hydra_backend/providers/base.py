import httpx
import json
from typing import Dict, Any, Optional

from ..core.exceptions import (
    UpstreamAPIError,
    UpstreamConnectionError,
    UpstreamTimeoutError,
)
from ..core.logging import logger


class BaseProvider:
    """
    HTTP plumbing shared by provider clients.

    Owns the base URL, the static headers and the two timeout budgets: a
    generous one for streaming requests and a shorter one for plain requests.
    Failures surface as the ``Upstream*`` exceptions; nothing is retried.
    """

    provider_name = "base"

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient):
        self.base_url = config.get("base_url", "").rstrip("/")
        self.headers: Dict[str, str] = {"content-type": "application/json"}
        self.headers.update(config.get("headers", {}))
        self.client = client

        connect_timeout = float(config.get("connect_timeout", 10.0))
        self.stream_timeout = httpx.Timeout(float(config.get("stream_timeout", 300.0)), connect=connect_timeout)
        self.request_timeout = httpx.Timeout(float(config.get("request_timeout", 120.0)), connect=connect_timeout)

    async def _send(
        self,
        url_path: str,
        request_body: Dict[str, Any],
        headers: Dict[str, str],
        streaming: bool,
        request_id: str = "unknown",
    ) -> httpx.Response:
        """
        Send a POST request to the provider.

        In streaming mode the response body is left unread and the caller owns
        closing the response. A non-success status raises UpstreamAPIError
        with the decoded error payload; the response is closed first.
        """
        url = f"{self.base_url}{url_path}"
        all_headers = {**self.headers, **headers}

        logger.debug_data(
            title=f"{self.provider_name.title()} Request",
            data={
                "url": url,
                "headers": all_headers,
                "request_body": request_body,
                "streaming": streaming,
            },
            request_id=request_id,
            component=f"{self.provider_name}_provider",
            data_flow="to_provider"
        )

        request = self.client.build_request(
            "POST",
            url,
            headers=all_headers,
            json=request_body,
            timeout=self.stream_timeout if streaming else self.request_timeout,
        )

        try:
            response = await self.client.send(request, stream=streaming)
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                f"{type(e).__name__}: {e}", provider_name=self.provider_name, original_exception=e
            ) from e
        except httpx.RequestError as e:
            raise UpstreamConnectionError(
                f"{type(e).__name__}: {e}", provider_name=self.provider_name, original_exception=e
            ) from e

        logger.debug_data(
            title="Provider Response Headers",
            data={
                "status_code": response.status_code,
                "headers": dict(response.headers),
            },
            request_id=request_id,
            component=f"{self.provider_name}_provider",
            data_flow="from_provider"
        )

        if response.is_success:
            return response

        try:
            await response.aread()
            payload = self._decode_error_payload(response)
        except httpx.HTTPError:
            payload = None
        finally:
            await response.aclose()

        raise UpstreamAPIError(response.status_code, payload, provider_name=self.provider_name)

    @staticmethod
    def _decode_error_payload(response: httpx.Response) -> Optional[Any]:
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            text = response.text
            return text or None
