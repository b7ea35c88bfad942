"""Tests for the assistant cog (Discord adapter over core.assistant)."""

from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest

from discord_bot.tests.fake_interaction import FakeInteraction


def make_message(content: str, dm: bool = True, channel_name: str = "general", author_bot: bool = False):
    """Build a mock discord.Message for on_message tests."""
    message = MagicMock()
    message.content = content
    message.author.id = 1001
    message.author.display_name = "Alice"
    message.author.bot = author_bot

    if dm:
        message.channel = MagicMock(spec=discord.DMChannel)
    else:
        message.channel = MagicMock(spec=discord.TextChannel)
        message.channel.name = channel_name
    message.channel.typing = MagicMock(return_value=AsyncMock())
    message.channel.send = AsyncMock()
    return message


class TestOnMessage:
    @pytest.mark.asyncio
    async def test_dm_is_answered_and_author_registered(self, assistant_cog, mock_register):
        message = make_message("/today")

        with patch(
            "discord_bot.cogs.assistant_cog.handle_message",
            new_callable=AsyncMock,
            return_value="📅 No meetings scheduled for today!",
        ) as mock_handle:
            await assistant_cog.on_message(message)

        mock_register.assert_awaited_once_with("1001", "Alice")
        mock_handle.assert_awaited_once_with("/today")
        message.channel.send.assert_awaited_once_with("📅 No meetings scheduled for today!")

    @pytest.mark.asyncio
    async def test_assistant_channel_is_answered(self, assistant_cog, mock_register):
        message = make_message("hello", dm=False, channel_name="assistant")

        with patch(
            "discord_bot.cogs.assistant_cog.handle_message", new_callable=AsyncMock, return_value="Hi!"
        ):
            await assistant_cog.on_message(message)

        message.channel.send.assert_awaited_once_with("Hi!")

    @pytest.mark.asyncio
    async def test_other_channels_are_ignored(self, assistant_cog, mock_register):
        message = make_message("hello", dm=False, channel_name="general")

        with patch(
            "discord_bot.cogs.assistant_cog.handle_message", new_callable=AsyncMock
        ) as mock_handle:
            await assistant_cog.on_message(message)

        mock_handle.assert_not_awaited()
        mock_register.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bot_messages_are_ignored(self, assistant_cog, mock_register):
        message = make_message("🔔 reminder", author_bot=True)

        with patch(
            "discord_bot.cogs.assistant_cog.handle_message", new_callable=AsyncMock
        ) as mock_handle:
            await assistant_cog.on_message(message)

        mock_handle.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_registration_failure_does_not_block_reply(self, assistant_cog, mock_register):
        mock_register.side_effect = RuntimeError("database is locked")
        message = make_message("hello")

        with patch(
            "discord_bot.cogs.assistant_cog.handle_message", new_callable=AsyncMock, return_value="Hi!"
        ):
            await assistant_cog.on_message(message)

        message.channel.send.assert_awaited_once_with("Hi!")

    @pytest.mark.asyncio
    async def test_long_reply_is_split(self, assistant_cog, mock_register):
        message = make_message("hello")
        reply = "a" * 1500 + "\n" + "b" * 1500

        with patch(
            "discord_bot.cogs.assistant_cog.handle_message", new_callable=AsyncMock, return_value=reply
        ):
            await assistant_cog.on_message(message)

        assert message.channel.send.await_count == 2


class TestSlashCommands:
    @pytest.mark.asyncio
    async def test_today_sends_summary(self, assistant_cog, mock_register):
        interaction = FakeInteraction()

        with patch(
            "discord_bot.cogs.assistant_cog.get_today_summary",
            new_callable=AsyncMock,
            return_value="📅 Today's meetings:\n\n1. Standup at 09:00",
        ):
            await assistant_cog.today.callback(assistant_cog, interaction)

        assert interaction.response.is_done()
        assert interaction.followups == ["📅 Today's meetings:\n\n1. Standup at 09:00"]
        mock_register.assert_awaited_once_with("1001", "Alice")

    @pytest.mark.asyncio
    async def test_today_error_gives_generic_reply(self, assistant_cog, mock_register):
        interaction = FakeInteraction()

        with patch(
            "discord_bot.cogs.assistant_cog.get_today_summary",
            new_callable=AsyncMock,
            side_effect=RuntimeError("calendar down"),
        ):
            await assistant_cog.today.callback(assistant_cog, interaction)

        assert interaction.followups == ["Sorry, I encountered an error processing your request."]

    @pytest.mark.asyncio
    async def test_chat_passes_message_through(self, assistant_cog, mock_register):
        interaction = FakeInteraction()

        with patch(
            "discord_bot.cogs.assistant_cog.general_chat",
            new_callable=AsyncMock,
            return_value="💬 Doing great!",
        ) as mock_chat:
            await assistant_cog.chat.callback(assistant_cog, interaction, "how are you?")

        mock_chat.assert_awaited_once_with("how are you?")
        assert interaction.followups == ["💬 Doing great!"]
