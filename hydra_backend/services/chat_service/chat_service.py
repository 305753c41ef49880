"""
Chat Service Module

Coordinates chat requests: credential lookup in the state store, the upstream
call through the provider client and, for streaming requests, the translation
of the upstream event stream into normalized NDJSON token records.

The state store is consulted once, up front, and never touched again while a
response is being produced.
"""

from contextlib import aclosing
from typing import Dict, Any, AsyncIterator

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ...core.config_manager import ConfigManager
from ...core.state_store import StateStore
from ...core.exceptions import UpstreamError
from ...core.logging import logger
from ...core.error_handling import ErrorHandler, ErrorContext
from ...providers import AnthropicProvider
from .stream_translator import StreamTranslator


NDJSON_MEDIA_TYPE = "application/x-ndjson"
STREAM_HEADERS = {
    "cache-control": "no-cache",
    "x-content-type-options": "nosniff",
}


class ChatService:
    """
    Main service for chat completion requests.

    Attributes:
        state_store (StateStore): holds the provider credential
        provider (AnthropicProvider): upstream client
        config_manager (ConfigManager): credential name and stream limits
    """

    def __init__(self, state_store: StateStore, provider: AnthropicProvider, config_manager: ConfigManager):
        self.state_store = state_store
        self.provider = provider
        self.config_manager = config_manager
        self.credential_name = config_manager.anthropic["api_key_name"]
        self.max_line_length = int(config_manager.anthropic["max_line_length"])

    def _require_api_key(self, context: ErrorContext) -> str:
        # Copy the key out of the store before any network activity
        api_key = self.state_store.get_credential(self.credential_name)
        if api_key is None:
            raise ErrorHandler.handle_credential_not_configured(self.credential_name, context)
        return api_key

    async def chat(self, request_body: Dict[str, Any], request_id: str) -> Dict[str, Any]:
        """
        Non-streaming chat completion.

        Returns:
            The normalized chat response: ``id``, ``message``, ``model``, ``usage``

        Raises:
            HTTPException: 400 when the credential is missing, a gateway-type
                status when the upstream fails
        """
        model = self.provider.resolve_model(request_body)
        context = ErrorContext(request_id=request_id, model_id=model, provider_name=self.provider.provider_name)
        api_key = self._require_api_key(context)

        with logger.request_context(
            operation="Chat Completion",
            request_id=request_id,
            model_id=model,
            provider_name=self.provider.provider_name,
            messages_count=len(request_body.get("messages", [])),
        ):
            try:
                chat_response = await self.provider.complete(request_body, api_key, request_id=request_id)
            except UpstreamError as e:
                raise ErrorHandler.handle_upstream_error(e, context) from e

        logger.info(
            "Chat completion usage",
            request_id=request_id,
            model_id=chat_response["model"],
            usage=chat_response["usage"],
        )
        return chat_response

    async def chat_stream(self, request_body: Dict[str, Any], request_id: str) -> StreamingResponse:
        """
        Streaming chat completion.

        Failures before the upstream answers are raised as HTTPExceptions.
        Once the upstream stream is open the response is committed to success
        and later failures are reported in the terminal record.
        """
        model = self.provider.resolve_model(request_body)
        context = ErrorContext(request_id=request_id, model_id=model, provider_name=self.provider.provider_name)
        api_key = self._require_api_key(context)

        logger.request(
            operation="Chat Stream",
            request_id=request_id,
            model_id=model,
            provider_name=self.provider.provider_name,
            messages_count=len(request_body.get("messages", [])),
        )

        try:
            upstream_response = await self.provider.send(request_body, api_key, streaming=True, request_id=request_id)
        except UpstreamError as e:
            raise ErrorHandler.handle_upstream_error(e, context) from e

        translator = StreamTranslator(model, request_id=request_id, max_line_length=self.max_line_length)
        # Runs even when the body generator never started; aclose is idempotent
        return StreamingResponse(
            self.stream_records(translator, upstream_response),
            media_type=NDJSON_MEDIA_TYPE,
            headers=STREAM_HEADERS,
            background=BackgroundTask(upstream_response.aclose),
        )

    async def stream_records(self, translator: StreamTranslator, upstream_response: httpx.Response) -> AsyncIterator[bytes]:
        """
        Encode translator records as NDJSON lines.

        The upstream response is closed when the sequence ends, fails or is
        abandoned by the client, releasing the long-lived connection.
        """
        try:
            async with aclosing(translator.translate(upstream_response.aiter_bytes())) as records:
                async for record in records:
                    yield record.to_ndjson()
        finally:
            await upstream_response.aclose()
            logger.debug(
                "Upstream stream closed",
                request_id=translator.request_id,
                final_state=translator.state,
            )
