from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, Optional, Protocol

from app.backend.errors import StreamingFault


logger = logging.getLogger(__name__)

_END = object()


class StreamSink(Protocol):
	def write(self, chunk: str) -> None:
		...

	def close(self) -> None:
		...


class QueueSink:
	"""Buffers chunks for a transport that pulls them with ``chunks()``."""

	def __init__(self) -> None:
		self._queue: asyncio.Queue = asyncio.Queue()

	def write(self, chunk: str) -> None:
		self._queue.put_nowait(chunk)

	def close(self) -> None:
		self._queue.put_nowait(_END)

	async def chunks(self) -> AsyncIterator[str]:
		while True:
			item = await self._queue.get()
			if item is _END:
				return
			yield item


class StreamHandle:
	def __init__(self, session_id: str, sink: StreamSink) -> None:
		self.session_id = session_id
		self.sink = sink
		self.open = True
		self.units_written = 0
		self.task: Optional[asyncio.Task] = None

	def __repr__(self) -> str:
		state = "open" if self.open else "closed"
		return f"<StreamHandle {self.session_id} {state} units={self.units_written}>"


class StreamController:
	"""Active output streams, at most one per session.

	A new ``begin`` for a session closes whatever stream that session already
	had (last begun wins).
	"""

	def __init__(self) -> None:
		self._active: Dict[str, StreamHandle] = {}

	def __len__(self) -> int:
		return len(self._active)

	def is_active(self, session_id: str) -> bool:
		return session_id in self._active

	def begin(self, session_id: str, sink: StreamSink | None = None) -> StreamHandle:
		previous = self._active.get(session_id)
		if previous is not None:
			logger.debug("Evicting %r for a newer stream", previous)
			self.end(previous)
		handle = StreamHandle(session_id, sink if sink is not None else QueueSink())
		self._active[session_id] = handle
		logger.debug("Began %r", handle)
		return handle

	def write(self, handle: StreamHandle, unit: str) -> bool:
		"""Deliver one unit followed by a single space; dropped once the handle is closed."""
		if not handle.open:
			return False
		try:
			handle.sink.write(f"{unit} ")
		except Exception as exc:
			self.end(handle)
			raise StreamingFault(f"Stream write failed for session {handle.session_id}.") from exc
		handle.units_written += 1
		return True

	def end(self, handle: StreamHandle) -> None:
		if not handle.open:
			return
		handle.open = False
		if self._active.get(handle.session_id) is handle:
			del self._active[handle.session_id]
		try:
			handle.sink.close()
		except Exception:
			logger.debug("Sink close failed for %r", handle, exc_info=True)
		logger.debug("Ended %r", handle)

	def interrupt(self, session_id: str) -> bool:
		handle = self._active.get(session_id)
		if handle is None:
			return False
		self.end(handle)
		logger.info("Interrupted stream for session %s after %d unit(s)", session_id, handle.units_written)
		return True
