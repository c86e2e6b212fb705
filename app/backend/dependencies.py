from __future__ import annotations

from fastapi import Request

from app.backend.services.conversation_engine import ConversationEngine


def get_engine(request: Request) -> ConversationEngine:
	return request.app.state.engine
