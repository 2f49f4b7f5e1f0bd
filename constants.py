import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 5000))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", None)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_API_URL = os.getenv("GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta")
TRANSLATION_TIMEOUT_SECONDS = float(os.getenv("TRANSLATION_TIMEOUT_SECONDS", 30))
TRANSLATION_MAX_ATTEMPTS = int(os.getenv("TRANSLATION_MAX_ATTEMPTS", 3))
TRANSLATION_RETRY_BASE_DELAY = float(os.getenv("TRANSLATION_RETRY_BASE_DELAY", 1.0))

# Presence grace windows
RECONNECT_GRACE_SECONDS = float(os.getenv("RECONNECT_GRACE_SECONDS", 20))
EMPTY_ROOM_GRACE_SECONDS = float(os.getenv("EMPTY_ROOM_GRACE_SECONDS", 300))

# Janitor
JANITOR_INTERVAL_SECONDS = float(os.getenv("JANITOR_INTERVAL_SECONDS", 1800))
ROOM_IDLE_TIMEOUT_SECONDS = float(os.getenv("ROOM_IDLE_TIMEOUT_SECONDS", 3600))

ROOM_CODE_MAX_ATTEMPTS = int(os.getenv("ROOM_CODE_MAX_ATTEMPTS", 20))
