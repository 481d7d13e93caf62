"""
Timeouts, limits and user-facing texts shared across the bot.
"""

# MongoDB
MONGODB_SERVER_SELECTION_TIMEOUT_MS = 15000
MONGODB_CONNECT_TIMEOUT_MS = 15000
DEFAULT_DB_NAME = "chatbot"
DEFAULT_COLLECTION_NAME = "telegram"
DEFAULT_SEARCH_INDEX = "telegramIndex"

# Deadlines (seconds)
STORE_CONNECT_DEADLINE_SECONDS = 5.0
PHRASE_SEARCH_DEADLINE_SECONDS = 5.0
COLLATED_SEARCH_DEADLINE_SECONDS = 4.0
SUBSTRING_SEARCH_DEADLINE_SECONDS = 4.0
SEND_MESSAGE_DEADLINE_SECONDS = 10.0

# Lookup
MAX_RESULTS = 5
COLLATION_LOCALE = "id"
COLLATION_STRENGTH = 1

# Telegram
TELEGRAM_API_BASE_URL = "https://api.telegram.org"
TELEGRAM_HTTP_TIMEOUT_SECONDS = 10.0
TELEGRAM_POLL_TIMEOUT_SECONDS = 30
POLLING_ERROR_BACKOFF_SECONDS = 3.0
SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

# Flood control: minimum gap between two sends to the same chat
MESSAGE_SPACING_SECONDS = 0.25

PLACEHOLDER = "-"
NOT_FOUND_MESSAGE = "❌ Tidak ditemukan data untuk: {query}"
DB_NOT_READY_MESSAGE = "⚠️ Database not ready. Please try again."
DEBUG_ECHO_MESSAGE = "👋 Received: {query}"
