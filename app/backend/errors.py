from __future__ import annotations


class ConversationError(Exception):
	status_code = 500
	code = "conversation_error"

	def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
		super().__init__(message)
		self.message = message
		if status_code is not None:
			self.status_code = status_code
		if code is not None:
			self.code = code


class InvalidRequest(ConversationError):
	status_code = 400
	code = "invalid_request"


class SessionNotFound(ConversationError):
	status_code = 404
	code = "session_not_found"

	def __init__(self, session_id: str):
		super().__init__("Conversation session not found")
		self.session_id = session_id


class BackendError(ConversationError):
	"""Live backend failed; recovered by the engine and never shown to the client."""

	status_code = 502
	code = "backend_error"


class StreamingFault(ConversationError):
	"""Transport write failed mid-stream; the stream is dropped without retry."""

	code = "streaming_fault"
