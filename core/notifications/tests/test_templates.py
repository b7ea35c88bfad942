"""Tests for message template loading and rendering."""

import pytest
from core.notifications.templates import get_message, load_templates, render_message


class TestLoadTemplates:
    def test_loads_yaml_file(self):
        templates = load_templates()
        assert isinstance(templates, dict)
        assert "reminder" in templates

    def test_every_message_has_discord_variant(self):
        templates = load_templates()
        for message_type, variants in templates.items():
            assert "discord" in variants, message_type

    def test_is_cached(self):
        assert load_templates() is load_templates()


class TestRenderMessage:
    def test_renders_simple_variable(self):
        result = render_message("Hello {name}!", {"name": "Alice"})
        assert result == "Hello Alice!"

    def test_renders_multiple_variables(self):
        result = render_message(
            "{title} starts in {time_until}",
            {"title": "Standup", "time_until": "5 minutes"},
        )
        assert result == "Standup starts in 5 minutes"

    def test_missing_variable_raises(self):
        with pytest.raises(KeyError):
            render_message("Hello {name}!", {})


class TestGetMessage:
    def test_message_without_placeholders(self):
        assert get_message("today_empty") == "📅 No meetings scheduled for today!"

    def test_message_with_context(self):
        assert get_message("chat_reply", {"reply": "Hi!"}) == "💬 Hi!"

    def test_unknown_message_type_raises(self):
        with pytest.raises(KeyError):
            get_message("no_such_message")
