"""
Chat Service Package

Modules:
- line_buffer: line reassembly over arbitrary byte-chunk boundaries
- parsed_event: decoding and classification of upstream ``data:`` payloads
- stream_translator: upstream event stream to normalized token records
- chat_service: chat request coordination (streaming and non-streaming)

Usage:
    from hydra_backend.services.chat_service import ChatService, StreamTranslator

    chat_service = ChatService(state_store, provider, config_manager)
"""

from .line_buffer import StreamLineBuffer
from .parsed_event import ParsedStreamEvent
from .stream_translator import StreamRecord, StreamTranslator
from .chat_service import ChatService

__all__ = [
    "StreamLineBuffer",
    "ParsedStreamEvent",
    "StreamRecord",
    "StreamTranslator",
    "ChatService",
]
