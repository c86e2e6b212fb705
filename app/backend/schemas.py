from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _CamelRequest(BaseModel):
	# Required fields are checked by the engine so a missing value is a 400, not a 422.
	model_config = ConfigDict(
		alias_generator=to_camel,
		populate_by_name=True,
		extra="ignore",
	)


class ApiError(_CamelModel):
	ok: bool = False
	error: str
	code: str
	evidence: List[str] = Field(default_factory=list)
	generated_at: str
	request_id: Optional[str] = None


class SendMessageRequest(_CamelRequest):
	session_id: Optional[str] = None
	message: Optional[str] = None


class InterruptRequest(_CamelRequest):
	session_id: Optional[str] = None


class AudioInputRequest(_CamelRequest):
	session_id: Optional[str] = None
	audio_data: Optional[str] = None


class StartConversationResponse(_CamelModel):
	session_id: str
	message: str
	system_instructions: str
	mode: Literal["live", "fallback"]


class MessageResponse(_CamelModel):
	response: str
	session_id: str


class InterruptResponse(_CamelModel):
	success: bool
	message: str
	session_id: str


class ConversationInfo(_CamelModel):
	session_id: str
	active: bool = True
	mode: Literal["live", "fallback"]
	system_instructions: str
	turns: int = 0
	streaming: bool = False


class HealthResponse(_CamelModel):
	status: Literal["healthy"] = "healthy"
	timestamp: str
	model: str
	fallback_mode: bool
	active_sessions: int
	active_responses: int
