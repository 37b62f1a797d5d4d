"""Default configuration settings for the Spark CLI package."""

from __future__ import annotations

# --- Endpoint ---
SPARK_BASE_URL = "https://spark-api-open.xf-yun.com"
CHAT_PATH = "v1/chat/completions"
DEFAULT_MODEL = "x1"
REQUEST_TIMEOUT = 60.0  # seconds, time to first byte only

# --- Request payload ---
DEFAULT_TEMPERATURE = 0.5
DEFAULT_TOP_P = 0.95
MAX_TOKENS_LIMIT = 32768
REQUEST_USER = "user"

# --- Stream protocol ---
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"
PLAIN_TEXT_CONTENT_TYPE = "text/plain"
DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data:"
HIDE_CONTINUE = "HIDE_CONTINUE"
STATUS_COMPLETE = "complete"

# --- Thinking block markers ---
THINK_OPEN = "<think>\n"
THINK_CLOSE = "\n</think>\n\n"

# --- Delivery ---
FRAME_INTERVAL = 1 / 60  # one display frame at 60 Hz
CHUNK_DIVISOR = 60
