"""
Centralized configuration for the calendar assistant.

All settings come from environment variables (loaded from .env / .env.local
by main.py), read through the functions below so tests can override them
with patch.dict(os.environ, ...).
"""

import os

DEFAULT_DISPLAY_TIMEZONE = "Asia/Jakarta"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///assistant.db"


def is_dev_mode() -> bool:
    """DEV_MODE=true|1|yes turns on debug logging."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_display_timezone() -> str:
    """Timezone used for prompts, today's listing and reminder times."""
    return os.getenv("DISPLAY_TIMEZONE", DEFAULT_DISPLAY_TIMEZONE)


def get_calendar_id() -> str:
    """Google Calendar ID to read and write ("primary" = the account's own)."""
    return os.getenv("GOOGLE_CALENDAR_ID", "primary")


def get_collaborator_timeout() -> float:
    """Seconds before an LLM or calendar call is abandoned."""
    return float(os.getenv("LLM_TIMEOUT_SECONDS", "30"))


def get_reminder_interval_seconds() -> int:
    """How often the reminder tick runs."""
    return int(os.getenv("REMINDER_INTERVAL_SECONDS", "5"))


def get_reminder_cleanup_minutes() -> int:
    """How often stale reminder bookkeeping is purged."""
    return int(os.getenv("REMINDER_CLEANUP_MINUTES", "10"))


def get_database_url() -> str:
    """Database holding the recipient registry."""
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_assistant_channel() -> str | None:
    """Optional guild channel name the bot answers in (DMs are always handled)."""
    return os.getenv("ASSISTANT_CHANNEL") or None


def is_calendar_credentials_set() -> bool:
    """Check that at least one way of loading calendar credentials is configured."""
    return any(
        os.getenv(name)
        for name in (
            "GOOGLE_CALENDAR_CREDENTIALS_JSON",
            "GOOGLE_CALENDAR_CREDENTIALS_FILE",
            "GOOGLE_CALENDAR_TOKEN_FILE",
        )
    )


# Required environment variables
# Format: (name, description, required_when_bot_disabled)
REQUIRED_ENV_VARS = [
    ("DISCORD_BOT_TOKEN", "Discord bot token", False),
]


def check_required_env_vars(bot_enabled: bool = True) -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, errors): Tuple of success flag and list of error messages
    """
    errors = []

    for name, description, required_when_bot_disabled in REQUIRED_ENV_VARS:
        if not bot_enabled and not required_when_bot_disabled:
            continue
        if not os.environ.get(name):
            errors.append(f"  ✗ {name}: Not set ({description})")

    if not is_calendar_credentials_set():
        errors.append(
            "  ✗ GOOGLE_CALENDAR_CREDENTIALS_JSON / GOOGLE_CALENDAR_CREDENTIALS_FILE / "
            "GOOGLE_CALENDAR_TOKEN_FILE: none set (Google Calendar credentials)"
        )

    return not errors, errors
