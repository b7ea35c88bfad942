"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import Column, DateTime, MetaData, Table, Text, func

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# RECIPIENTS
# Everyone who has messaged the bot; all of them get reminders.
# =====================================================
recipients = Table(
    "recipients",
    metadata,
    Column("recipient_id", Text, primary_key=True),  # Discord user ID
    Column("display_name", Text, nullable=False),
    Column("registered_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
)
