from __future__ import annotations

from typing import Protocol, Sequence, Tuple

from app.backend import constants
from app.backend.errors import BackendError
from app.backend.services.chat_backend import ChatBackend, GenerationConfig, Turn


class ResponseSource(Protocol):
	async def generate(self, history: Sequence[Turn], message: str) -> str:
		...


FLAGSHIP_RESPONSE = (
	"Revolt Motors is India's first AI-enabled electric motorcycle company. Our flagship RV400 "
	"delivers a top speed of 85 km/h, three riding modes (Eco, Normal and Sport) and a range of up "
	"to 150 km on a single charge, while the RV300 offers an accessible entry into electric riding. "
	"Both combine the thrill of a real motorcycle with zero tailpipe emissions."
)

SPECIFICATIONS_RESPONSE = (
	"The Revolt RV400 is powered by a 3 kW mid-drive motor and a 3.24 kWh removable lithium-ion "
	"battery. It reaches 85 km/h, covers up to 150 km per charge in Eco mode and charges from 0 to "
	"100% in about 4.5 hours. Features include combined braking with front and rear disc brakes, "
	"upside-down front forks, LED lighting and a swappable battery you can charge at home."
)

DEALERSHIP_RESPONSE = (
	"Revolt Motors has dealerships and service hubs across major Indian cities including Delhi, "
	"Mumbai, Pune, Bengaluru, Chennai, Hyderabad and Ahmedabad, with more opening every quarter. "
	"You can book a test ride or locate your nearest Revolt Hub through the Revolt website or the "
	"MyRevolt app, and our service network handles maintenance, repairs and battery checks."
)

TECHNOLOGY_RESPONSE = (
	"Every Revolt motorcycle is a connected, smart machine. Built-in 4G connectivity powers the "
	"MyRevolt app, giving you remote start, geo-fencing, live bike location, ride statistics and "
	"battery status. You can even choose artificial exhaust sounds, and over-the-air updates keep "
	"your bike's software current without a workshop visit."
)

SUSTAINABILITY_RESPONSE = (
	"Riding a Revolt means zero tailpipe emissions and dramatically lower running costs, often "
	"under 10 paise per kilometre. Our electric drivetrain is quieter, needs less maintenance than "
	"a petrol engine and helps cut urban air pollution, supporting a cleaner, greener future for "
	"India's cities."
)

DEFAULT_RESPONSE = (
	"Thanks for reaching out to Revolt Motors! I can help with our electric motorcycles, their "
	"specifications and features, battery and smart technology, dealerships and service centers, "
	"and the environmental benefits of going electric. What would you like to know?"
)

# Ordered; the first group with a keyword contained in the message wins.
KEYWORD_GROUPS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
	(("electric", "motorcycle"), FLAGSHIP_RESPONSE),
	(("spec", "feature", "battery", "range"), SPECIFICATIONS_RESPONSE),
	(("dealer", "service", "where", "location"), DEALERSHIP_RESPONSE),
	(("technology", "tech", "battery", "smart"), TECHNOLOGY_RESPONSE),
	(("sustain", "environment", "green", "eco"), SUSTAINABILITY_RESPONSE),
)


def fallback_reply(message: str | None) -> str:
	lowered = (message or "").lower()
	for keywords, response in KEYWORD_GROUPS:
		if any(keyword in lowered for keyword in keywords):
			return response
	return DEFAULT_RESPONSE


class FallbackSource:
	"""Canned answers keyed on message keywords. Never fails."""

	async def generate(self, history: Sequence[Turn], message: str) -> str:
		return fallback_reply(message)


class LiveBackendSource:
	def __init__(self, backend: ChatBackend, generation_config: GenerationConfig) -> None:
		self._backend = backend
		self._generation_config = generation_config

	@property
	def model(self) -> str:
		return self._backend.model

	async def generate(self, history: Sequence[Turn], message: str) -> str:
		full_message = f"{constants.SYSTEM_INSTRUCTIONS}\n\nUser message: {message}"
		try:
			chat = self._backend.start_chat(
				[*constants.GREETING_HISTORY, *history],
				self._generation_config,
			)
			return await chat.send_message(full_message)
		except BackendError:
			raise
		except Exception as exc:
			raise BackendError(f"Backend request failed ({exc.__class__.__name__}).") from exc
