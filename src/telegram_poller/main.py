"""
Command-line entry point for the Telegram poller.

Loads settings, verifies the bot token, then polls until SIGINT/SIGTERM
or until the fetch loop gives up.
"""

import asyncio
import signal
import sys

import structlog

from .config import Settings, get_settings
from .exceptions import TelegramPollerError
from .logging_config import setup_logging
from .models import Update
from .poller import Poller

logger = structlog.get_logger(__name__)


async def log_update(context: asyncio.Event, update: Update) -> None:
    """Default handler: log the interesting parts of an update."""
    message = update.get("message")
    if message:
        logger.info(
            "Message received",
            update_id=update.update_id,
            sender=(message.get("from") or {}).get("username"),
            chat_id=(message.get("chat") or {}).get("id"),
            text=message.get("text"),
        )

    callback_query = update.get("callback_query")
    if callback_query:
        logger.info(
            "Callback query received",
            update_id=update.update_id,
            data=callback_query.get("data"),
        )

    edited_message = update.get("edited_message")
    if edited_message:
        logger.info(
            "Message edited",
            update_id=update.update_id,
            text=edited_message.get("text"),
        )


async def run(settings: Settings) -> int:
    """
    Run the bot until interrupted.

    Returns:
        Process exit code
    """
    poller = Poller(settings.poller_config())

    try:
        bot = await poller.get_me()
    except TelegramPollerError as e:
        logger.error("Failed to connect to Telegram API", error=str(e))
        await poller.client.aclose()
        return 1

    logger.info(
        "Bot connected successfully",
        username=f"@{bot.username}",
        id=bot.id,
        name=bot.first_name,
    )

    cancel_event = asyncio.Event()
    shutdown = asyncio.Event()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, shutdown.set)

    try:
        await poller.start_with_handler(log_update, cancel_event)
        logger.info("Bot is running. Press Ctrl+C to stop.")

        shutdown_waiter = asyncio.create_task(shutdown.wait())
        loop_waiter = asyncio.create_task(poller.join())
        await asyncio.wait(
            {shutdown_waiter, loop_waiter}, return_when=asyncio.FIRST_COMPLETED
        )
        shutdown_waiter.cancel()
        loop_waiter.cancel()
    finally:
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(signum)

    logger.info("Shutting down gracefully...")
    cancel_event.set()
    await poller.stop()
    if poller.dispatch_task is not None:
        await poller.dispatch_task

    if poller.fatal_error is not None:
        logger.error("Poller stopped on error", error=str(poller.fatal_error))
        return 1

    logger.info("Bot stopped successfully.")
    return 0


def main() -> None:
    """Console script entry point."""
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":
    main()
