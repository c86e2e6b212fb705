from types import SimpleNamespace
from typing import List, Optional, Sequence, Tuple

from app.backend.services.chat_backend import GenerationConfig


class FakeChat:
	def __init__(self, backend: "FakeBackend", history: Sequence[Tuple[str, str]]):
		self._backend = backend
		self._history = list(history)

	async def send_message(self, text: str) -> str:
		self._backend.calls.append((self._history, text))
		if self._backend.error is not None:
			raise self._backend.error
		return self._backend.reply


class FakeBackend:
	model = "fake-model"

	def __init__(self, *, reply: str = "Live reply about the RV400 from the backend", error: Optional[Exception] = None):
		self.reply = reply
		self.error = error
		self.calls: List[Tuple[List[Tuple[str, str]], str]] = []
		self.configs: List[GenerationConfig] = []

	def start_chat(self, history, generation_config):
		self.configs.append(generation_config)
		return FakeChat(self, history)


class FakeResponses:
	def __init__(self, *, output_text: Optional[str] = None, error: Optional[Exception] = None):
		self._output_text = output_text
		self._error = error
		self.calls: List[dict] = []

	async def create(self, **kwargs):
		self.calls.append(kwargs)
		if self._error is not None:
			raise self._error
		return SimpleNamespace(output_text=self._output_text)


class FakeOpenAIClient:
	def __init__(self, *, output_text: Optional[str] = None, error: Optional[Exception] = None):
		self.responses = FakeResponses(output_text=output_text, error=error)
