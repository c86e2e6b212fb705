from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Set

from app.backend import constants
from app.backend.config import Settings
from app.backend.errors import BackendError, InvalidRequest, SessionNotFound, StreamingFault
from app.backend.services.chat_backend import GenerationConfig, build_backend
from app.backend.services.response_sources import FallbackSource, LiveBackendSource, ResponseSource, fallback_reply
from app.backend.services.session_store import Session, SessionMode, SessionStore
from app.backend.services.stream_controller import QueueSink, StreamController, StreamHandle, StreamSink


logger = logging.getLogger(__name__)

_DEFAULT_STREAM_DELAY_S = 0.09


class ConversationEngine:
	"""Routes each exchange to the live backend or the canned fallback and streams replies.

	Both tables are injected so tests can hold on to them. A live failure
	downgrades the session to fallback for the rest of its life and the
	caller still receives a fallback answer in the same request.
	"""

	def __init__(
		self,
		*,
		sessions: SessionStore,
		streams: StreamController,
		live_source: Optional[LiveBackendSource] = None,
		fallback_source: Optional[ResponseSource] = None,
		stream_delay_s: float = _DEFAULT_STREAM_DELAY_S,
	) -> None:
		self.sessions = sessions
		self.streams = streams
		self._live = live_source
		self._fallback: ResponseSource = fallback_source or FallbackSource()
		self._stream_delay_s = max(stream_delay_s, 0.0)
		self._tasks: Set[asyncio.Task] = set()

	@property
	def live_available(self) -> bool:
		return self._live is not None

	@property
	def model_name(self) -> Optional[str]:
		return self._live.model if self._live is not None else None

	def start_conversation(self) -> Session:
		mode = SessionMode.LIVE if self.live_available else SessionMode.FALLBACK
		return self.sessions.create(mode)

	def get_session(self, session_id: str) -> Session:
		try:
			return self.sessions.get(session_id)
		except KeyError:
			raise SessionNotFound(session_id) from None

	def is_streaming(self, session_id: str) -> bool:
		return self.streams.is_active(session_id)

	def _route(self, session_id: Optional[str], message: Optional[str]) -> Session:
		if not session_id or not message:
			raise InvalidRequest("Session ID and message are required")
		return self.get_session(session_id)

	async def _generate(self, session: Session, message: str) -> str:
		if session.mode is SessionMode.FALLBACK:
			return await self._fallback.generate(session.history_pairs(), message)
		if session.mode is SessionMode.LIVE:
			if self._live is None:
				self.sessions.set_mode(session.session_id, SessionMode.FALLBACK)
				return await self._fallback.generate(session.history_pairs(), message)
			try:
				text = await self._live.generate(session.history_pairs(), message)
			except BackendError as exc:
				logger.warning("Live backend failed for session %s (%s); using fallback", session.session_id, exc.code)
				self.sessions.set_mode(session.session_id, SessionMode.FALLBACK)
				return await self._fallback.generate(session.history_pairs(), message)
			self.sessions.append_history(session.session_id, "user", message)
			self.sessions.append_history(session.session_id, "assistant", text)
			return text
		raise AssertionError(f"Unhandled session mode: {session.mode!r}")

	async def send_message(self, session_id: Optional[str], message: Optional[str]) -> str:
		session = self._route(session_id, message)
		return await self._generate(session, message or "")

	def fallback_reply(self, message: Optional[str]) -> str:
		return fallback_reply(message)

	async def start_stream(
		self,
		session_id: Optional[str],
		message: Optional[str],
		sink: Optional[StreamSink] = None,
	) -> StreamHandle:
		"""Generate the reply and start emitting it unit by unit.

		Request-shape errors are raised before any stream is registered.
		"""
		session = self._route(session_id, message)
		text = await self._generate(session, message or "")
		return self.stream_text(session.session_id, text, sink)

	def stream_text(self, session_id: str, text: str, sink: Optional[StreamSink] = None) -> StreamHandle:
		handle = self.streams.begin(session_id, sink)
		task = asyncio.create_task(self._pump(handle, text.split()))
		handle.task = task
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return handle

	async def _pump(self, handle: StreamHandle, units: List[str]) -> None:
		try:
			for index, unit in enumerate(units):
				if index:
					await asyncio.sleep(self._stream_delay_s)
				# Interruption is observed here, once per unit.
				if not handle.open:
					logger.debug("Stopped %r at unit %d of %d", handle, index, len(units))
					return
				self.streams.write(handle, unit)
		except StreamingFault as exc:
			logger.warning("%s", exc.message)
			return
		self.streams.end(handle)

	async def iter_chunks(self, handle: StreamHandle) -> AsyncIterator[str]:
		sink = handle.sink
		if not isinstance(sink, QueueSink):
			raise TypeError("iter_chunks requires a stream begun with the default queue sink")
		try:
			async for chunk in sink.chunks():
				yield chunk
		finally:
			# Client went away or stream finished; either way the slot is released.
			self.streams.end(handle)

	def interrupt(self, session_id: Optional[str]) -> bool:
		if not session_id:
			raise InvalidRequest("Session ID is required")
		return self.streams.interrupt(session_id)

	def audio_input(self, session_id: Optional[str], audio_data: Optional[str]) -> str:
		if not session_id or not audio_data:
			raise InvalidRequest("Session ID and audio data are required")
		self.get_session(session_id)
		return constants.AUDIO_PLACEHOLDER_RESPONSE


def build_engine(settings: Settings) -> ConversationEngine:
	backend = build_backend(settings)
	live_source = None
	if backend is not None:
		live_source = LiveBackendSource(backend, GenerationConfig(max_output_tokens=settings.max_output_tokens))
	return ConversationEngine(
		sessions=SessionStore(max_turns=settings.session_max_turns, ttl_seconds=settings.session_ttl_s),
		streams=StreamController(),
		live_source=live_source,
		stream_delay_s=settings.stream_delay_s,
	)
