from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Literal


ProviderMode = Literal["auto", "openai", "local"]

_DEFAULT_PROVIDER_MODE: ProviderMode = "auto"
_DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"
_DEFAULT_OPENAI_TIMEOUT_S = 30.0
_DEFAULT_MAX_OUTPUT_TOKENS = 1000
_DEFAULT_STREAM_DELAY_MS = 90
_DEFAULT_SESSION_MAX_TURNS = 80
_DEFAULT_SESSION_TTL_S = 0
_DEFAULT_HOST = "127.0.0.1"
_DEFAULT_PORT = 3000
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
	provider_mode: ProviderMode
	openai_api_key: str
	openai_model: str
	openai_timeout_s: float
	max_output_tokens: int
	stream_delay_s: float
	session_max_turns: int
	session_ttl_s: int
	log_level: str
	host: str
	port: int

	@property
	def effective_provider_mode(self) -> ProviderMode:
		if self.provider_mode == "auto":
			return "openai" if self.openai_api_key else "local"
		return self.provider_mode

	def masked_api_key(self) -> str:
		if not self.openai_api_key:
			return "(not set)"
		return f"{self.openai_api_key[:10]}..."


def _int_env(name: str, default: int, minimum: int = 1) -> int:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = int(raw)
	except ValueError:
		return default
	return value if value >= minimum else default


def _float_env(name: str, default: float, *, allow_zero: bool = False) -> float:
	raw = os.getenv(name, "").strip()
	if not raw:
		return default
	try:
		value = float(raw)
	except ValueError:
		return default
	if value < 0 or (value == 0 and not allow_zero):
		return default
	return value


def _provider_mode() -> ProviderMode:
	mode = os.getenv("CHAT_PROVIDER_MODE", _DEFAULT_PROVIDER_MODE).strip().lower() or _DEFAULT_PROVIDER_MODE
	if mode not in {"auto", "openai", "local"}:
		logger.warning("CHAT_PROVIDER_MODE=%r is not one of auto, openai, local; using local.", mode)
		return "local"
	return mode  # type: ignore[return-value]


def load_settings() -> Settings:
	return Settings(
		provider_mode=_provider_mode(),
		openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
		openai_model=os.getenv("CHAT_OPENAI_MODEL", _DEFAULT_OPENAI_MODEL).strip() or _DEFAULT_OPENAI_MODEL,
		openai_timeout_s=_float_env("CHAT_OPENAI_TIMEOUT_S", _DEFAULT_OPENAI_TIMEOUT_S),
		max_output_tokens=_int_env("CHAT_MAX_OUTPUT_TOKENS", _DEFAULT_MAX_OUTPUT_TOKENS, minimum=1),
		stream_delay_s=_float_env("CHAT_STREAM_DELAY_MS", float(_DEFAULT_STREAM_DELAY_MS), allow_zero=True) / 1000.0,
		session_max_turns=_int_env("CHAT_SESSION_MAX_TURNS", _DEFAULT_SESSION_MAX_TURNS, minimum=2),
		session_ttl_s=_int_env("CHAT_SESSION_TTL_S", _DEFAULT_SESSION_TTL_S, minimum=0),
		log_level=os.getenv("CHAT_LOG_LEVEL", "INFO").strip().upper() or "INFO",
		host=os.getenv("HOST", _DEFAULT_HOST).strip() or _DEFAULT_HOST,
		port=_int_env("PORT", _DEFAULT_PORT, minimum=1),
	)


def configure_logging(level: str = "INFO") -> None:
	root = logging.getLogger()
	if not any(getattr(handler, "_chat_handler", False) for handler in root.handlers):
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter(_LOG_FORMAT))
		handler._chat_handler = True  # type: ignore[attr-defined]
		root.addHandler(handler)
	root.setLevel(getattr(logging, level, logging.INFO))
