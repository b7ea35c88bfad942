"""
Recipient registry: everyone who has talked to the bot receives reminders.

Append-only from the assistant's point of view. The reminder engine reads
the full list on every tick, so a newly registered recipient gets the next
reminder without a restart.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import insert, select, update

from .database import get_connection, get_transaction
from .tables import recipients

logger = logging.getLogger(__name__)


async def register_recipient(recipient_id: str, display_name: str) -> bool:
    """
    Register a recipient, refreshing the display name if it changed.

    Returns:
        True if the recipient is new
    """
    async with get_transaction() as conn:
        result = await conn.execute(
            select(recipients.c.display_name).where(
                recipients.c.recipient_id == recipient_id
            )
        )
        row = result.first()

        if row is None:
            await conn.execute(
                insert(recipients).values(
                    recipient_id=recipient_id,
                    display_name=display_name,
                )
            )
            logger.info(f"Registered recipient {recipient_id} ({display_name})")
            return True

        if row.display_name != display_name:
            await conn.execute(
                update(recipients)
                .where(recipients.c.recipient_id == recipient_id)
                .values(
                    display_name=display_name,
                    updated_at=datetime.now(timezone.utc),
                )
            )
        return False


async def list_recipient_ids() -> list[str]:
    """All registered recipient IDs, oldest registration first."""
    async with get_connection() as conn:
        result = await conn.execute(
            select(recipients.c.recipient_id).order_by(recipients.c.registered_at)
        )
        return [row.recipient_id for row in result]


async def get_recipients() -> dict[str, str]:
    """Mapping of recipient ID to display name."""
    async with get_connection() as conn:
        result = await conn.execute(
            select(recipients.c.recipient_id, recipients.c.display_name)
        )
        return {row.recipient_id: row.display_name for row in result}
