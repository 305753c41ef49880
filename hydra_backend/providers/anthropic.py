import httpx
import json
from typing import Dict, Any, Optional

from .base import BaseProvider
from ..core.exceptions import UpstreamInvalidResponseError
from ..core.logging import logger
from ..utils.timestamps import now_iso8601


class AnthropicProvider(BaseProvider):
    """Client for the Anthropic Messages API."""

    provider_name = "anthropic"
    messages_path = "/messages"

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient):
        super().__init__(config, client)
        self.headers["anthropic-version"] = str(config.get("api_version", "2023-06-01"))
        self.default_model = config.get("default_model", "claude-sonnet-4-5-20250929")
        self.default_max_tokens = int(config.get("default_max_tokens", 4096))

    def resolve_model(self, request_body: Dict[str, Any]) -> str:
        return request_body.get("model") or self.default_model

    def build_request_body(self, request_body: Dict[str, Any], streaming: bool) -> Dict[str, Any]:
        """
        Translate a normalized chat request into an Anthropic request body.

        Messages are reduced to ``role``/``content``; ``max_tokens`` is always
        present since the Messages API requires it.
        """
        max_tokens = request_body.get("max_tokens")
        anthropic_request = {
            "model": self.resolve_model(request_body),
            "max_tokens": max_tokens if max_tokens is not None else self.default_max_tokens,
            "messages": [
                {"role": message["role"], "content": message["content"]}
                for message in request_body.get("messages", [])
            ],
        }
        if request_body.get("temperature") is not None:
            anthropic_request["temperature"] = request_body["temperature"]
        if streaming:
            anthropic_request["stream"] = True
        return anthropic_request

    async def send(
        self,
        request_body: Dict[str, Any],
        api_key: str,
        streaming: bool,
        request_id: str = "unknown",
    ) -> httpx.Response:
        """
        Issue the chat request.

        Raises:
            UpstreamAPIError: the provider rejected the request
            UpstreamConnectionError: the provider could not be reached
            UpstreamTimeoutError: no response within the timeout budget
        """
        return await self._send(
            self.messages_path,
            self.build_request_body(request_body, streaming),
            headers={"x-api-key": api_key},
            streaming=streaming,
            request_id=request_id,
        )

    async def complete(self, request_body: Dict[str, Any], api_key: str, request_id: str = "unknown") -> Dict[str, Any]:
        """Non-streaming completion mapped to the normalized chat response."""
        requested_model = self.resolve_model(request_body)
        response = await self.send(request_body, api_key, streaming=False, request_id=request_id)

        try:
            response_json = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise UpstreamInvalidResponseError(
                str(e), provider_name=self.provider_name, original_exception=e
            ) from e
        if not isinstance(response_json, dict):
            raise UpstreamInvalidResponseError(
                "expected a JSON object", provider_name=self.provider_name
            )

        logger.debug_data(
            title="Anthropic Response JSON",
            data=response_json,
            request_id=request_id,
            component="anthropic_provider",
            data_flow="from_provider"
        )

        return self.to_chat_response(response_json, requested_model)

    @staticmethod
    def to_chat_response(response_json: Dict[str, Any], requested_model: str) -> Dict[str, Any]:
        content = "".join(
            block["text"]
            for block in response_json.get("content") or []
            if isinstance(block, dict) and isinstance(block.get("text"), str)
        )
        model = response_json.get("model") or requested_model

        return {
            "id": response_json.get("id") or "unknown",
            "message": {
                "role": "assistant",
                "content": content,
                "model": model,
                "timestamp": now_iso8601(),
            },
            "model": model,
            "usage": AnthropicProvider._usage(response_json.get("usage")),
        }

    @staticmethod
    def _usage(usage: Optional[Dict[str, Any]]) -> Optional[Dict[str, int]]:
        if not isinstance(usage, dict):
            return None
        prompt_tokens = AnthropicProvider._token_count(usage.get("input_tokens"))
        completion_tokens = AnthropicProvider._token_count(usage.get("output_tokens"))
        return {
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "total_tokens": prompt_tokens + completion_tokens,
        }

    @staticmethod
    def _token_count(value: Any) -> int:
        # Anything but a non-negative integer counts as zero
        if isinstance(value, bool) or not isinstance(value, int):
            return 0
        return max(value, 0)
