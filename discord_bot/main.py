"""
Discord side of the calendar assistant.

Normally started by the root main.py next to the reminder scheduler. Run
this file directly to chat with the bot without sending reminders.
"""

import logging
import os
import sys

import discord
from discord.ext import commands
from dotenv import load_dotenv

from core.notifications.channels.discord import set_bot
from core.notifications.templates import get_message

logger = logging.getLogger(__name__)

# Extensions loaded on connect; each is a thin adapter over core/
COGS = [
    "cogs.assistant_cog",
]


def create_bot() -> commands.Bot:
    """Bot that can read DM text. Chat shortcuts (/start, /today) are parsed in core."""
    intents = discord.Intents.default()
    intents.message_content = True
    return commands.Bot(command_prefix=commands.when_mentioned, intents=intents)


bot = create_bot()


@bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: discord.app_commands.AppCommandError):
    """Last-resort reply for slash commands that raised."""
    logger.error(f"Slash command /{interaction.command.name if interaction.command else '?'} failed: {error}")
    reply = get_message("error_generic")
    if interaction.response.is_done():
        await interaction.followup.send(reply, ephemeral=True)
    else:
        await interaction.response.send_message(reply, ephemeral=True)


async def _load_cogs() -> None:
    for cog in COGS:
        if cog in bot.extensions:
            continue
        try:
            await bot.load_extension(cog)
            logger.info(f"Loaded {cog}")
        except Exception as e:
            logger.exception(f"Could not load {cog}: {e}")


@bot.event
async def on_ready():
    """Enable reminder delivery, load cogs and publish slash commands."""
    logger.info(f"Connected to Discord as {bot.user}")
    set_bot(bot)

    await _load_cogs()

    try:
        synced = await bot.tree.sync()
        logger.info(f"Synced {len(synced)} slash command(s)")
    except Exception as e:
        logger.exception(f"Slash command sync failed: {e}")


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.error("DISCORD_BOT_TOKEN is not set")
        sys.exit(1)

    bot.run(token)


if __name__ == "__main__":
    main()
