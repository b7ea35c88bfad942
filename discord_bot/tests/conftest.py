"""
Pytest fixtures for Discord cog tests.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest


@pytest.fixture
def assistant_cog():
    """AssistantCog on a mock bot, answering DMs and the #assistant channel."""
    from discord_bot.cogs.assistant_cog import AssistantCog

    with patch("discord_bot.cogs.assistant_cog.get_assistant_channel", return_value="assistant"):
        cog = AssistantCog(MagicMock())
    return cog


@pytest.fixture
def mock_register():
    with patch(
        "discord_bot.cogs.assistant_cog.register_recipient", new_callable=AsyncMock
    ) as mock:
        yield mock
