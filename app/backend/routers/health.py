from __future__ import annotations

from fastapi import APIRouter, Depends

from app.backend.dependencies import get_engine
from app.backend.response import now_iso
from app.backend.schemas import HealthResponse
from app.backend.services.conversation_engine import ConversationEngine


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health(engine: ConversationEngine = Depends(get_engine)):
	if engine.live_available:
		model = f"{engine.model_name} initialized"
	else:
		model = "Model not initialized (fallback responses)"
	return HealthResponse(
		timestamp=now_iso(),
		model=model,
		fallback_mode=not engine.live_available,
		active_sessions=len(engine.sessions),
		active_responses=len(engine.streams),
	)
