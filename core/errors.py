"""Exceptions raised by the assistant's external collaborators."""


class AssistantError(Exception):
    """Base class for collaborator failures surfaced to the caller."""


class CalendarError(AssistantError):
    """Google Calendar call failed, timed out, or is not configured."""


class LLMError(AssistantError):
    """Natural-language engine call failed or timed out."""
