"""In-memory conversation sessions, owned by one store per process."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from threading import Lock
from typing import Dict, List, Tuple


logger = logging.getLogger(__name__)


class SessionMode(str, Enum):
	LIVE = "live"
	FALLBACK = "fallback"


@dataclass
class ChatTurn:
	role: str
	text: str


@dataclass
class Session:
	session_id: str
	mode: SessionMode
	updated_at: datetime
	history: List[ChatTurn] = field(default_factory=list)

	def history_pairs(self) -> List[Tuple[str, str]]:
		return [(turn.role, turn.text) for turn in self.history]


def _now() -> datetime:
	return datetime.now(timezone.utc)


class SessionStore:
	"""Map session ids to session state.

	Sessions live until process exit unless ``ttl_seconds`` is positive, in
	which case idle sessions are evicted lazily on each access.
	"""

	def __init__(self, *, max_turns: int = 80, ttl_seconds: int = 0) -> None:
		self._sessions: Dict[str, Session] = {}
		self._lock = Lock()
		self._max_turns = max_turns
		self._ttl_seconds = ttl_seconds

	def __len__(self) -> int:
		with self._lock:
			self._evict_expired_locked()
			return len(self._sessions)

	def _evict_expired_locked(self) -> None:
		if self._ttl_seconds <= 0:
			return
		cutoff = _now() - timedelta(seconds=self._ttl_seconds)
		expired = [sid for sid, session in self._sessions.items() if session.updated_at < cutoff]
		for session_id in expired:
			self._sessions.pop(session_id, None)
		if expired:
			logger.info("Evicted %d idle session(s)", len(expired))

	def _get_locked(self, session_id: str) -> Session:
		self._evict_expired_locked()
		session = self._sessions.get(session_id)
		if session is None:
			raise KeyError(session_id)
		return session

	def create(self, mode: SessionMode) -> Session:
		session = Session(session_id=uuid.uuid4().hex, mode=mode, updated_at=_now())
		with self._lock:
			self._evict_expired_locked()
			self._sessions[session.session_id] = session
		logger.info("Created session %s in %s mode", session.session_id, mode.value)
		return session

	def get(self, session_id: str) -> Session:
		"""Return a session or raise KeyError if missing."""
		with self._lock:
			return self._get_locked(session_id)

	def set_mode(self, session_id: str, mode: SessionMode) -> Session:
		"""Downgrade only; a fallback session never returns to live."""
		with self._lock:
			session = self._get_locked(session_id)
			if mode is SessionMode.FALLBACK and session.mode is not SessionMode.FALLBACK:
				session.mode = SessionMode.FALLBACK
				logger.warning("Session %s permanently switched to fallback mode", session_id)
			session.updated_at = _now()
			return session

	def append_history(self, session_id: str, role: str, text: str) -> Session:
		role_clean = "assistant" if role == "assistant" else "user"
		with self._lock:
			session = self._get_locked(session_id)
			session.history.append(ChatTurn(role=role_clean, text=text))
			session.history = session.history[-self._max_turns :]
			session.updated_at = _now()
			return session
