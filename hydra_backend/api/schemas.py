from typing import List, Optional

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: str
    content: str
    model: Optional[str] = None
    timestamp: Optional[str] = None


class ChatRequest(BaseModel):
    messages: List[ChatMessage]
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = Field(default=None, ge=1)
    stream: Optional[bool] = None


class SettingsPayload(BaseModel):
    theme: str
    language: str
    default_model: str
    auto_start: bool


class ApiKeyRequest(BaseModel):
    provider: str
    key: str


class CreateSessionRequest(BaseModel):
    title: str


class AddMessageRequest(BaseModel):
    role: str
    content: str
    model: Optional[str] = None
    agent: Optional[str] = None
