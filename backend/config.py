# Runtime configuration read from the environment (.env supported for local runs)
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_AUTOSAVE_DELAY_MS = 3000
DEFAULT_SAVED_DISPLAY_MS = 2000
DEFAULT_CLINIC_TIMEZONE = "Asia/Kuala_Lumpur"


def _int_env(name: str, default: int) -> int:
    """Read a non-negative integer env var, falling back to default on junk."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"


def get_frontend_url() -> str:
    return os.environ.get("FRONTEND_URL", "")


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def get_autosave_delay_seconds() -> float:
    """Debounce window for the admin edit form."""
    return _int_env("AUTOSAVE_DELAY_MS", DEFAULT_AUTOSAVE_DELAY_MS) / 1000


def get_saved_display_seconds() -> float:
    """How long the 'saved' state is shown before the form reads as clean again."""
    return _int_env("SAVED_DISPLAY_MS", DEFAULT_SAVED_DISPLAY_MS) / 1000


def get_clinic_timezone() -> str:
    return os.environ.get("CLINIC_TIMEZONE", "") or DEFAULT_CLINIC_TIMEZONE
