from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any


@dataclass
class Settings:
    theme: str
    language: str
    default_model: str
    auto_start: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    role: str
    content: str
    timestamp: str
    model: Optional[str] = None
    agent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
        }
        if self.model is not None:
            data["model"] = self.model
        if self.agent is not None:
            data["agent"] = self.agent
        data["timestamp"] = self.timestamp
        return data


@dataclass
class Session:
    id: str
    title: str
    created_at: str
    messages: List[HistoryEntry] = field(default_factory=list)

    def summary(self) -> "SessionSummary":
        return SessionSummary(
            id=self.id,
            title=self.title,
            created_at=self.created_at,
            message_count=len(self.messages),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "messages": [entry.to_dict() for entry in self.messages],
        }


@dataclass(frozen=True)
class SessionSummary:
    """Session listing view without the message bodies."""
    id: str
    title: str
    created_at: str
    message_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Agent:
    id: str
    name: str
    role: str
    tier: str
    status: str
    description: str
    model: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    tier: str
    provider: str
    available: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
