"""
Assistant Discord cog.

Thin adapter: registers whoever writes to the bot as a reminder recipient,
passes the text to core.assistant and sends the reply back. All decision
logic lives in core/.
"""

import logging

import discord
from discord import app_commands
from discord.ext import commands

from core.assistant import general_chat, get_today_summary, handle_message
from core.config import get_assistant_channel
from core.notifications.channels.discord import split_message
from core.notifications.templates import get_message
from core.recipients import register_recipient

logger = logging.getLogger(__name__)


class AssistantCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.assistant_channel = get_assistant_channel()

    def _should_answer(self, message: discord.Message) -> bool:
        if message.author.bot or not message.content:
            return False
        if isinstance(message.channel, discord.DMChannel):
            return True
        channel_name = getattr(message.channel, "name", None)
        return bool(self.assistant_channel) and channel_name == self.assistant_channel

    async def _register_author(self, user: discord.abc.User) -> None:
        """Record the user as a recipient; failure must not block the reply."""
        try:
            await register_recipient(str(user.id), user.display_name)
        except Exception as e:
            logger.error(f"Failed to register recipient {user.id}: {e}")

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        """Answer DMs and messages in the assistant channel."""
        if not self._should_answer(message):
            return

        logger.info(f"Received message from {message.author.id}: {message.content[:50]}")
        await self._register_author(message.author)

        async with message.channel.typing():
            reply = await handle_message(message.content)

        for chunk in split_message(reply):
            await message.channel.send(chunk)

    @app_commands.command(name="today", description="List today's meetings")
    async def today(self, interaction: discord.Interaction):
        await self._register_author(interaction.user)
        await interaction.response.defer()
        try:
            reply = await get_today_summary()
        except Exception as e:
            logger.exception(f"Error listing today's events: {e}")
            reply = get_message("error_generic")
        for chunk in split_message(reply):
            await interaction.followup.send(chunk)

    @app_commands.command(name="chat", description="Chat with the assistant")
    @app_commands.describe(message="What you want to say")
    async def chat(self, interaction: discord.Interaction, message: str):
        await self._register_author(interaction.user)
        await interaction.response.defer()
        try:
            reply = await general_chat(message)
        except Exception as e:
            logger.exception(f"Error in chat: {e}")
            reply = get_message("error_generic")
        for chunk in split_message(reply):
            await interaction.followup.send(chunk)


async def setup(bot: commands.Bot):
    await bot.add_cog(AssistantCog(bot))
