from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from openai import AsyncOpenAI

from app.backend.config import Settings
from app.backend.errors import BackendError


logger = logging.getLogger(__name__)

Turn = Tuple[str, str]


@dataclass(frozen=True)
class GenerationConfig:
	max_output_tokens: int = 1000


class ChatHandle(Protocol):
	async def send_message(self, text: str) -> str:
		...


class ChatBackend(Protocol):
	model: str

	def start_chat(self, history: Sequence[Turn], generation_config: GenerationConfig) -> ChatHandle:
		...


def extract_response_text(response: Any) -> str:
	output_text = getattr(response, "output_text", None)
	if isinstance(output_text, str) and output_text.strip():
		return output_text.strip()

	output = getattr(response, "output", None)
	if not isinstance(output, list):
		return ""
	parts: List[str] = []
	for item in output:
		content = getattr(item, "content", None)
		if content is None and isinstance(item, dict):
			content = item.get("content")
		if not isinstance(content, list):
			continue
		for chunk in content:
			text = getattr(chunk, "text", None)
			if text is None and isinstance(chunk, dict):
				text = chunk.get("text")
			if isinstance(text, str) and text.strip():
				parts.append(text.strip())
	return "\n".join(parts).strip()


def _backend_error(exc: Exception) -> BackendError:
	name = exc.__class__.__name__
	if isinstance(exc, TimeoutError) or name == "APITimeoutError":
		return BackendError("Backend request timed out.", code="backend_timeout")
	return BackendError(f"Backend request failed ({name}).")


class OpenAIChatHandle:
	"""One multi-turn chat against the OpenAI Responses API."""

	def __init__(
		self,
		*,
		client: AsyncOpenAI,
		model: str,
		history: Sequence[Turn],
		generation_config: GenerationConfig,
	) -> None:
		self._client = client
		self._model = model
		self._history: List[Turn] = list(history)
		self._generation_config = generation_config

	def _input(self, text: str) -> List[dict]:
		items = [{"role": role, "content": content} for role, content in self._history]
		items.append({"role": "user", "content": text})
		return items

	async def send_message(self, text: str) -> str:
		try:
			response = await self._client.responses.create(
				model=self._model,
				input=self._input(text),
				max_output_tokens=self._generation_config.max_output_tokens,
			)
		except Exception as exc:
			raise _backend_error(exc) from exc

		reply = extract_response_text(response)
		if not reply:
			raise BackendError("Backend returned an empty response.")
		self._history.append(("user", text))
		self._history.append(("assistant", reply))
		return reply


class OpenAIChatBackend:
	def __init__(self, *, client: AsyncOpenAI, model: str) -> None:
		self._client = client
		self.model = model

	def start_chat(self, history: Sequence[Turn], generation_config: GenerationConfig) -> OpenAIChatHandle:
		return OpenAIChatHandle(
			client=self._client,
			model=self.model,
			history=history,
			generation_config=generation_config,
		)


def build_backend(settings: Settings) -> Optional[OpenAIChatBackend]:
	"""Probe once at startup; ``None`` means every new session starts in fallback."""
	if settings.effective_provider_mode == "local":
		logger.info("Provider mode is local; live backend disabled.")
		return None
	if not settings.openai_api_key:
		logger.warning("OPENAI_API_KEY is not set; live backend disabled.")
		return None
	try:
		client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.openai_timeout_s)
	except Exception:
		logger.exception("Failed to initialize OpenAI client; live backend disabled.")
		return None
	return OpenAIChatBackend(client=client, model=settings.openai_model)
