"""
Natural-language assistant: LLM prompts, reply parsing, and action dispatch.

Public API:
    handle_message(text) - Reply to a chat message (never raises)
    parse_response(text) - Classify an LLM reply into an Intent
    dispatch_intent(intent) - Execute an Intent
"""

from .actions import dispatch_intent, general_chat, get_today_summary, handle_message
from .parser import (
    CheckToday,
    CreateEvent,
    General,
    IncompleteEvent,
    Intent,
    Unrecognized,
    parse_response,
)

__all__ = [
    "handle_message",
    "dispatch_intent",
    "general_chat",
    "get_today_summary",
    "parse_response",
    "Intent",
    "CreateEvent",
    "IncompleteEvent",
    "CheckToday",
    "General",
    "Unrecognized",
]
