from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from app.backend import constants
from app.backend.dependencies import get_engine
from app.backend.errors import ConversationError
from app.backend.schemas import (
	ApiError,
	AudioInputRequest,
	ConversationInfo,
	InterruptRequest,
	InterruptResponse,
	MessageResponse,
	SendMessageRequest,
	StartConversationResponse,
)
from app.backend.services.conversation_engine import ConversationEngine


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["conversation"])

_ERROR_RESPONSES = {
	400: {"model": ApiError},
	404: {"model": ApiError},
}


def _http_error(exc: ConversationError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"code": exc.code, "message": exc.message},
	)


@router.post("/start-conversation", response_model=StartConversationResponse)
async def start_conversation(engine: ConversationEngine = Depends(get_engine)):
	session = engine.start_conversation()
	return StartConversationResponse(
		session_id=session.session_id,
		message=constants.CONVERSATION_STARTED_MESSAGE,
		system_instructions=constants.SYSTEM_INSTRUCTIONS,
		mode=session.mode.value,
	)


@router.post("/send-message", response_model=MessageResponse, responses=_ERROR_RESPONSES)
async def send_message(payload: SendMessageRequest, engine: ConversationEngine = Depends(get_engine)):
	try:
		text = await engine.send_message(payload.session_id, payload.message)
	except ConversationError as exc:
		raise _http_error(exc) from exc
	except Exception:
		logger.exception("Unexpected failure answering session %s; replying from fallback", payload.session_id)
		text = engine.fallback_reply(payload.message)
	return MessageResponse(response=text, session_id=payload.session_id)


@router.post("/send-message-stream", responses=_ERROR_RESPONSES)
async def send_message_stream(payload: SendMessageRequest, engine: ConversationEngine = Depends(get_engine)):
	try:
		handle = await engine.start_stream(payload.session_id, payload.message)
	except ConversationError as exc:
		raise _http_error(exc) from exc
	except Exception:
		logger.exception("Unexpected failure streaming session %s; replying from fallback", payload.session_id)
		handle = engine.stream_text(payload.session_id, engine.fallback_reply(payload.message))

	return StreamingResponse(
		engine.iter_chunks(handle),
		media_type=constants.STREAM_MEDIA_TYPE,
		headers={
			"Cache-Control": "no-cache",
			"X-Accel-Buffering": "no",
		},
	)


@router.post("/interrupt", response_model=InterruptResponse, responses={400: {"model": ApiError}})
async def interrupt(payload: InterruptRequest, engine: ConversationEngine = Depends(get_engine)):
	try:
		success = engine.interrupt(payload.session_id)
	except ConversationError as exc:
		raise _http_error(exc) from exc
	return InterruptResponse(
		success=success,
		message=constants.INTERRUPT_SUCCESS_MESSAGE if success else constants.INTERRUPT_NOOP_MESSAGE,
		session_id=payload.session_id,
	)


@router.post("/audio-input", response_model=MessageResponse, responses=_ERROR_RESPONSES)
async def audio_input(payload: AudioInputRequest, engine: ConversationEngine = Depends(get_engine)):
	try:
		text = engine.audio_input(payload.session_id, payload.audio_data)
	except ConversationError as exc:
		raise _http_error(exc) from exc
	return MessageResponse(response=text, session_id=payload.session_id)


@router.get("/conversation/{session_id}", response_model=ConversationInfo, responses={404: {"model": ApiError}})
async def get_conversation(session_id: str, engine: ConversationEngine = Depends(get_engine)):
	try:
		session = engine.get_session(session_id)
	except ConversationError as exc:
		raise _http_error(exc) from exc
	return ConversationInfo(
		session_id=session.session_id,
		mode=session.mode.value,
		system_instructions=constants.SYSTEM_INSTRUCTIONS,
		turns=len(session.history),
		streaming=engine.is_streaming(session.session_id),
	)
