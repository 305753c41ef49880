"""
State Store Module

Single point of truth for the mutable server-side data: settings, provider
credentials, the agent roster and chat sessions.

Every operation runs under one process-wide ``threading.Lock`` for its full
duration and hands out copies of the stored records. No operation performs I/O
or awaits while holding the lock.
"""

import copy
import threading
import time
import uuid
from typing import Dict, List, Optional, Sequence

from .logging import logger
from .models import Agent, HistoryEntry, Session, SessionSummary, Settings
from ..utils.timestamps import now_iso8601


TIER_MODELS = {
    "Commander": "claude-opus-4-6",
    "Coordinator": "claude-sonnet-4-5-20250929",
    "Executor": "claude-haiku-4-5-20251001",
}

AGENT_ROSTER = (
    ("Geralt", "Security", "Commander", "Master witcher and security specialist, hunts vulnerabilities like monsters"),
    ("Yennefer", "Architecture", "Commander", "Powerful sorceress of system architecture, designs elegant magical structures"),
    ("Vesemir", "Testing", "Commander", "Veteran witcher mentor, rigorously tests and validates all operations"),
    ("Triss", "Data", "Coordinator", "Skilled sorceress of data management, weaves information with precision"),
    ("Jaskier", "Documentation", "Coordinator", "Legendary bard, chronicles every detail with flair and accuracy"),
    ("Ciri", "Performance", "Coordinator", "Elder Blood carrier, optimises performance with dimensional speed"),
    ("Dijkstra", "Strategy", "Coordinator", "Spymaster strategist, plans operations with cunning intelligence"),
    ("Lambert", "DevOps", "Executor", "Bold witcher, executes deployments and infrastructure operations"),
    ("Eskel", "Backend", "Executor", "Steady witcher, builds and maintains robust backend services"),
    ("Regis", "Research", "Executor", "Scholarly higher vampire, researches and analyses with ancient wisdom"),
    ("Zoltan", "Frontend", "Executor", "Dwarven warrior, forges powerful and resilient frontend interfaces"),
    ("Philippa", "Monitoring", "Executor", "All-seeing sorceress, monitors systems with her magical owl familiar"),
)


def model_for_tier(tier: str) -> str:
    return TIER_MODELS.get(tier, TIER_MODELS["Coordinator"])


def build_agent_roster() -> List[Agent]:
    return [
        Agent(
            id=f"agent-{index:03d}",
            name=name,
            role=role,
            tier=tier,
            status="active",
            description=description,
            model=model_for_tier(tier),
        )
        for index, (name, role, tier, description) in enumerate(AGENT_ROSTER, start=1)
    ]


class StateStore:
    """
    Process-wide in-memory state guarded by a single mutual-exclusion lock.

    Attributes:
        settings: current Settings record (replaced wholesale, never merged)
        credentials: provider-name to secret key mapping, never logged
        sessions: sessions in creation order
        current_session_id: pointer to the implicitly selected session
    """

    def __init__(
        self,
        settings: Settings,
        credentials: Optional[Dict[str, str]] = None,
        agents: Optional[Sequence[Agent]] = None,
    ):
        self._lock = threading.Lock()
        self._settings = copy.copy(settings)
        self._credentials: Dict[str, str] = dict(credentials or {})
        self._agents: tuple = tuple(agents if agents is not None else build_agent_roster())
        self._sessions: List[Session] = []
        self._current_session_id: Optional[str] = None
        self._start_time = time.monotonic()

        logger.info("State store initialized", state_store={
            "configured_providers": sorted(self._credentials),
            "agents_count": len(self._agents),
        })

    # Settings

    def get_settings(self) -> Settings:
        with self._lock:
            return copy.copy(self._settings)

    def replace_settings(self, new: Settings) -> Settings:
        with self._lock:
            self._settings = copy.copy(new)
            return copy.copy(self._settings)

    # Credentials

    def set_credential(self, provider: str, key: str) -> None:
        with self._lock:
            self._credentials[provider] = key
        logger.info("Credential updated", provider=provider)

    def get_credential(self, provider: str) -> Optional[str]:
        with self._lock:
            return self._credentials.get(provider)

    def has_credential(self, provider: str) -> bool:
        with self._lock:
            return provider in self._credentials

    # Agents

    def list_agents(self) -> List[Agent]:
        with self._lock:
            return list(self._agents)

    # Sessions

    @property
    def current_session_id(self) -> Optional[str]:
        with self._lock:
            return self._current_session_id

    def list_sessions(self) -> List[SessionSummary]:
        with self._lock:
            return [session.summary() for session in self._sessions]

    def create_session(self, title: str) -> Session:
        session = Session(
            id=str(uuid.uuid4()),
            title=title,
            created_at=now_iso8601(),
        )
        with self._lock:
            self._sessions.append(session)
            self._current_session_id = session.id
            return copy.deepcopy(session)

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._find(session_id)
            return copy.deepcopy(session) if session is not None else None

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            for index, session in enumerate(self._sessions):
                if session.id == session_id:
                    del self._sessions[index]
                    if self._current_session_id == session_id:
                        self._current_session_id = None
                    return True
            return False

    def append_message(
        self,
        session_id: str,
        role: str,
        content: str,
        model: Optional[str] = None,
        agent: Optional[str] = None,
    ) -> Optional[HistoryEntry]:
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            role=role,
            content=content,
            model=model,
            agent=agent,
            timestamp=now_iso8601(),
        )
        with self._lock:
            session = self._find(session_id)
            if session is None:
                return None
            session.messages.append(entry)
            return entry

    def uptime_seconds(self) -> int:
        return int(time.monotonic() - self._start_time)

    def _find(self, session_id: str) -> Optional[Session]:
        # Caller must hold the lock
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None
