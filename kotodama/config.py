"""Game tuning constants and environment-driven settings.

Constants mirror the shipped game rules; environment settings come from the
process environment after loading `.env` from the repository root.

Environment:
  DATA_DIR          Storage directory (default: ./data)
  GEMINI_API_KEY    Provider key, used server-side only
  NARRATOR_FORMAT   "gemini" | "openai" | "proxy" (default: gemini)
  NARRATOR_URL      Provider base URL (default depends on format)
  NARRATOR_MODEL    Model identifier (default: gemini-1.5-flash-latest)
  NARRATOR_TIMEOUT  HTTP timeout in seconds (default: 120)
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

ROOT = Path(__file__).parent.parent
load_dotenv(ROOT / ".env")

DEFAULT_DATA_DIR = ROOT / "data"

# --- Save slots ---
MAX_SAVE_SLOTS = 3
MAX_INVENTORY = 5
UNSET_NAME = "(name not set)"
STARTING_HP = 100

# --- Action budget ---
DAILY_RECOVERY = 20             # actions restored per elapsed reset boundary
MAX_ACTIONS = 50                # stock ceiling
INITIAL_ACTIONS = 50            # allotment for a new game
RESET_HOUR = 4                  # 04:00 local time
RESET_TZ_OFFSET_MINUTES = 540   # JST, fixed offset
REWARD_RECOVERY = 5             # actions granted by the opt-in recovery

_NARRATOR_URLS = {
    "gemini": "https://generativelanguage.googleapis.com",
    "openai": "https://api.openai.com",
    "proxy": "http://localhost:8000",
}


def data_dir() -> Path:
    return Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))


def narrator_settings() -> dict[str, Any]:
    """Connection settings for the server-side narrator."""
    provider_format = os.getenv("NARRATOR_FORMAT", "gemini")
    return {
        "provider_format": provider_format,
        "provider_url": os.getenv(
            "NARRATOR_URL", _NARRATOR_URLS.get(provider_format, _NARRATOR_URLS["gemini"])
        ),
        "api_key": os.getenv("GEMINI_API_KEY", ""),
        "model": os.getenv("NARRATOR_MODEL", "gemini-1.5-flash-latest"),
        "timeout": float(os.getenv("NARRATOR_TIMEOUT", "120")),
    }
