APP_NAME = "Revolt Motors AI Chat"
APP_VERSION = "1.0.0"
DEFAULT_CORS_ALLOW_ORIGINS = [
	"http://localhost",
	"http://127.0.0.1",
	"http://localhost:3000",
]
DEFAULT_TRUSTED_HOSTS = [
	"127.0.0.1",
	"localhost",
	"testserver",
]

SYSTEM_INSTRUCTIONS = """You are an AI assistant specialized in Revolt Motors. You can only talk about:
- Revolt Motors electric vehicles and motorcycles
- Revolt Motors company information, history, and achievements
- Revolt Motors product specifications, features, and benefits
- Revolt Motors dealerships, service centers, and customer support
- Electric vehicle technology as it relates to Revolt Motors
- Sustainability and environmental benefits of Revolt Motors vehicles

If asked about anything unrelated to Revolt Motors, politely redirect the conversation back to Revolt Motors topics. Always be helpful, informative, and enthusiastic about Revolt Motors products and services."""

# Seed turns every live chat starts from, ahead of the session's own history.
GREETING_HISTORY = (
	("user", "Hello, I'd like to learn about Revolt Motors."),
	(
		"assistant",
		"Hello! I'm excited to tell you all about Revolt Motors! We're India's first electric motorcycle "
		"manufacturer, revolutionizing the two-wheeler industry with cutting-edge electric technology. "
		"What would you like to know about our amazing electric motorcycles?",
	),
)

CONVERSATION_STARTED_MESSAGE = "Conversation started successfully"
INTERRUPT_SUCCESS_MESSAGE = "Response interrupted successfully"
INTERRUPT_NOOP_MESSAGE = "No active response to interrupt"
AUDIO_PLACEHOLDER_RESPONSE = (
	"I received your audio input! Currently, this is a text-based interface, "
	"but audio integration is planned for the full live voice implementation."
)
GENERIC_ERROR_MESSAGE = "Something went wrong!"

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
