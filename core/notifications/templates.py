"""
User-visible text, kept in messages.yaml.

Every entry is keyed by message type, then by delivery channel. Only
"discord" exists today; the channel level stays so a second transport can
add its own wording without touching call sites.
"""

from pathlib import Path

import yaml

MESSAGES_PATH = Path(__file__).parent / "messages.yaml"
DEFAULT_CHANNEL = "discord"

_templates: dict | None = None


def load_templates() -> dict:
    """Parse messages.yaml once and keep it for the life of the process."""
    global _templates
    if _templates is None:
        with open(MESSAGES_PATH, encoding="utf-8") as f:
            _templates = yaml.safe_load(f)
    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Fill {placeholders} in a template.

    Raises:
        KeyError: If the template uses a name missing from context
    """
    return template.format(**context)


def get_message(
    message_type: str, context: dict | None = None, channel: str = DEFAULT_CHANNEL
) -> str:
    """
    Rendered text for one message type.

    Args:
        message_type: Top-level key in messages.yaml, e.g. "reminder"
        context: Placeholder values (None for static messages)
        channel: Delivery channel variant

    Raises:
        KeyError: If the message type or channel variant doesn't exist
    """
    variants = load_templates()[message_type]
    return render_message(variants[channel], context or {})
