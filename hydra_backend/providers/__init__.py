from typing import Dict, Any
import httpx

from .base import BaseProvider
from .anthropic import AnthropicProvider


def get_provider_instance(provider_config: Dict[str, Any], client: httpx.AsyncClient) -> AnthropicProvider:
    return AnthropicProvider(provider_config, client)


__all__ = ["BaseProvider", "AnthropicProvider", "get_provider_instance"]
