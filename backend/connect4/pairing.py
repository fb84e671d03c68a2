"""
Лобби (in-memory): все подключённые сессии, справочник ников и пары соперников.
Пара хранится как индекс id -> id соперника, поэтому при отключении
достаточно удалить две записи, без разрыва циклических ссылок.
"""
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .directory import Directory
from .session import PairingError, Session

logger = logging.getLogger(__name__)


@dataclass
class Match:
    first_id: str
    second_id: str
    wins: dict[str, int] = field(default_factory=dict)  # по id сессии
    draws: int = 0

    def record(self, winner_id: str | None) -> None:
        if winner_id is None:
            self.draws += 1
        else:
            self.wins[winner_id] = self.wins.get(winner_id, 0) + 1


class Lobby:
    def __init__(self):
        self.directory = Directory()
        self._sessions: dict[str, Session] = {}
        self._pairs: dict[str, str] = {}
        self._matches: dict[str, Match] = {}

    def connect(self, send: Callable[[dict[str, Any]], Any]) -> Session:
        """Создать сессию для нового подключения. Приветствие уходит сразу."""
        session = Session(str(uuid.uuid4()), self, send)
        self._sessions[session.id] = session
        session.welcome()
        return session

    def remove(self, session_id: str) -> None:
        """Убрать сессию из лобби (после quit)."""
        if session_id in self._pairs:
            logger.warning("Lobby: session %s removed while still paired", session_id)
            self.unpair(session_id)
        self._sessions.pop(session_id, None)

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def pair(self, first_id: str, second_id: str) -> Match:
        if first_id == second_id:
            raise PairingError(f"session {first_id} cannot be paired with itself")
        for sid in (first_id, second_id):
            if sid not in self._sessions:
                raise PairingError(f"unknown session {sid}")
            if sid in self._pairs:
                raise PairingError(f"session {sid} is already paired")
        match = Match(first_id=first_id, second_id=second_id)
        self._pairs[first_id] = second_id
        self._pairs[second_id] = first_id
        self._matches[first_id] = self._matches[second_id] = match
        return match

    def unpair(self, session_id: str) -> str:
        """Разорвать пару. Возвращает id бывшего соперника."""
        other_id = self._pairs.pop(session_id, None)
        if other_id is None or self._pairs.pop(other_id, None) != session_id:
            raise PairingError(f"session {session_id} is not paired")
        self._matches.pop(session_id, None)
        self._matches.pop(other_id, None)
        return other_id

    def opponent_of(self, session_id: str) -> Session | None:
        other_id = self._pairs.get(session_id)
        if other_id is None:
            return None
        opponent = self._sessions.get(other_id)
        if opponent is None:
            raise PairingError(f"opponent {other_id} of {session_id} is not connected")
        return opponent

    def require_opponent(self, session_id: str) -> Session:
        opponent = self.opponent_of(session_id)
        if opponent is None:
            raise PairingError(f"session {session_id} has no opponent")
        return opponent

    def match_for(self, session_id: str) -> Match | None:
        return self._matches.get(session_id)

    def stats(self) -> dict[str, int]:
        return {
            "connected": len(self._sessions),
            "named": len(self.directory),
            "pairs": len(self._pairs) // 2,
        }

    def __len__(self) -> int:
        return len(self._sessions)
