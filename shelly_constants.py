"""Shared constants for Shelly-AI.

Import-safe module with no dependencies -- can be imported from anywhere
without risk of circular imports.
"""

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENROUTER_CHAT_URL = f"{OPENROUTER_BASE_URL}/chat/completions"
OPENROUTER_KEYS_URL = "https://openrouter.ai/settings/keys"
OPENROUTER_API_KEY_ENV = "OPENROUTER_API_KEY"

SHELLY_HOME_ENV = "SHELLY_HOME"
DEFAULT_SITE_URL = "https://shelly-ai.local"
DEFAULT_SITE_NAME = "Shelly-AI CLI"

# Seconds to wait for the endpoint (connect, read)
REQUEST_TIMEOUT = (10, 300)
