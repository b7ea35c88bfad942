"""
Calendar assistant server.

Everything runs on one asyncio loop:
  1. FastAPI serves the status endpoints
  2. the Discord bot answers chat messages and delivers reminder DMs
  3. the reminder scheduler polls Google Calendar every few seconds

uvicorn owns the loop and its signal handling; the FastAPI lifespan starts
the bot and the scheduler and tears them down in reverse order.

Usage: python main.py [--no-bot] [--port PORT]
"""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Local packages must be importable before anything below is imported
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))
# Cogs load as "cogs.<name>"; appended so discord_bot/main.py never shadows this file
sys.path.append(str(project_root / "discord_bot"))

from dotenv import load_dotenv

load_dotenv(project_root / ".env.local")  # Developer overrides, not committed
load_dotenv()

import sentry_sdk
from fastapi import FastAPI

from core.calendar import get_calendar_service
from core.config import (
    check_required_env_vars,
    get_api_port,
    get_display_timezone,
    is_dev_mode,
)
from core.database import close_engine, create_tables
from core.errors import CalendarError
from core.notifications.scheduler import (
    get_engine,
    init_scheduler,
    is_scheduler_running,
    shutdown_scheduler,
)
from discord_bot.main import bot

logger = logging.getLogger(__name__)

_bot_task: asyncio.Task | None = None


def is_bot_disabled() -> bool:
    return os.getenv("DISABLE_DISCORD_BOT", "").lower() in ("true", "1", "yes")


async def start_bot():
    """
    Connect the bot and keep it running.

    bot.start() rather than bot.run(): the loop already belongs to uvicorn.
    """
    if is_bot_disabled():
        logger.info("Discord bot disabled, reminders will not be delivered")
        return

    try:
        await bot.start(os.environ["DISCORD_BOT_TOKEN"])
    except Exception as e:
        logger.error(f"Discord bot stopped with an error: {e}")
        sentry_sdk.capture_exception(e)
        raise


async def stop_bot():
    if bot and not bot.is_closed():
        await bot.close()
        logger.info("Discord bot disconnected")


async def _cancel_bot_task() -> None:
    global _bot_task

    if _bot_task is None:
        return
    _bot_task.cancel()
    try:
        await _bot_task
    except asyncio.CancelledError:
        pass
    except Exception as e:
        # Already reported by start_bot(); shutdown continues regardless
        logger.warning(f"Discord bot task had failed: {e}")
    _bot_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Start the recipient store, calendar client, bot and reminder scheduler.

    The recipient table and calendar credentials are checked before anything
    starts; a failure there aborts startup.
    """
    global _bot_task

    await create_tables()
    get_calendar_service()

    logger.info("Connecting Discord bot...")
    _bot_task = asyncio.create_task(start_bot())
    init_scheduler()

    yield

    logger.info("Shutting down...")
    # Scheduler first, so no reminder tick is cut off mid fan-out
    await shutdown_scheduler()
    await stop_bot()
    await close_engine()
    await _cancel_bot_task()


app = FastAPI(
    title="Calendar Assistant",
    lifespan=lifespan,
)


def _bot_status() -> dict:
    ready = bool(bot) and bot.is_ready()
    return {
        "connected": ready,
        "latency_ms": round(bot.latency * 1000) if ready else None,
    }


@app.get("/")
async def root():
    return {"status": "ok", "bot_ready": _bot_status()["connected"]}


@app.get("/health")
async def health():
    """Bot connection, scheduler state and whether a reminder tick is in flight."""
    engine = get_engine()
    bot_status = _bot_status()
    return {
        "status": "healthy",
        "bot_connected": bot_status["connected"],
        "bot_latency_ms": bot_status["latency_ms"],
        "scheduler_running": is_scheduler_running(),
        "reminder_tick_in_flight": engine.is_running if engine else False,
        "display_timezone": get_display_timezone(),
    }


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if is_dev_mode() else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # One job execution line per tick otherwise
    logging.getLogger("apscheduler").setLevel(logging.WARNING)


def _parse_args():
    import argparse

    parser = argparse.ArgumentParser(description="Calendar assistant (Discord bot + reminders)")
    parser.add_argument(
        "--no-bot",
        action="store_true",
        help="Run without Discord (reminders are computed but not delivered)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="Port for the status endpoints (default: API_PORT or 8000)",
    )
    return parser.parse_args()


if __name__ == "__main__":
    import uvicorn

    args = _parse_args()
    if args.no_bot:
        os.environ["DISABLE_DISCORD_BOT"] = "true"

    configure_logging()

    if os.getenv("SENTRY_DSN"):
        sentry_sdk.init(dsn=os.environ["SENTRY_DSN"])

    ok, errors = check_required_env_vars(bot_enabled=not is_bot_disabled())
    if not ok:
        print("Missing required configuration:")
        for error in errors:
            print(error)
        sys.exit(1)

    try:
        get_calendar_service()
    except CalendarError as e:
        print(f"Error: {e}")
        sys.exit(1)

    uvicorn.run(app, host="0.0.0.0", port=args.port)
