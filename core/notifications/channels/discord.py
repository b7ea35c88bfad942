"""
Discord delivery: direct messages sent through the running bot.

The bot registers itself with set_bot() once connected. Until then every
send reports failure instead of raising, so the reminder engine just counts
the recipient as undelivered.
"""

import asyncio
import logging

from discord import Client

logger = logging.getLogger(__name__)

# Discord rejects messages longer than this
MAX_MESSAGE_LENGTH = 2000
# Pause after each DM while holding the semaphore (~1 DM/second overall)
DM_INTERVAL_SECONDS = 1.0

_bot: Client | None = None
_dm_semaphore: asyncio.Semaphore | None = None


def set_bot(bot: Client | None) -> None:
    """Register (or clear) the connected bot used for delivery."""
    global _bot, _dm_semaphore
    _bot = bot
    _dm_semaphore = asyncio.Semaphore(1) if bot else None


def split_message(message: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split a message into chunks Discord will accept.

    Breaks at the last newline that fits; a single line longer than the
    limit is cut hard.
    """
    chunks = []
    remaining = message
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(remaining[:cut])
        remaining = remaining[cut:].lstrip("\n")
    if remaining or not chunks:
        chunks.append(remaining)
    return chunks


async def _deliver(discord_id: str, message: str) -> None:
    user = await _bot.fetch_user(int(discord_id))
    for chunk in split_message(message):
        await user.send(chunk)


async def send_discord_dm(discord_id: str, message: str) -> bool:
    """
    DM one user, splitting long messages.

    Args:
        discord_id: Discord user ID as a string
        message: Text to send

    Returns:
        True if every chunk was sent, False if the bot is offline or Discord
        refused (DMs closed, unknown user, HTTP error)
    """
    if not _bot:
        logger.warning("Discord bot not connected, cannot send DM")
        return False

    try:
        if _dm_semaphore is None:
            await _deliver(discord_id, message)
        else:
            async with _dm_semaphore:
                await _deliver(discord_id, message)
                await asyncio.sleep(DM_INTERVAL_SECONDS)
    except Exception as e:
        logger.warning(f"Failed to send DM to {discord_id}: {e}")
        return False

    return True
