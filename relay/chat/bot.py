"""Telegram bot application factory for the mention relay.

This module provides build_application() — the single function responsible for
constructing a fully-wired python-telegram-bot Application instance.

Responsibilities:
  - Accept RelaySettings and return a ready-to-run Application
  - Register all message and command handlers
  - Make settings available to handlers through application.bot_data

Usage (from __main__.py):
    from relay.chat.bot import build_application
    from relay.config import get_settings

    app = build_application(get_settings())
    app.run_polling(allowed_updates=Update.ALL_TYPES)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    MessageHandler,
    filters,
)

from relay.chat.handlers import handle_error, handle_help, handle_message, handle_start

if TYPE_CHECKING:
    from relay.config import RelaySettings

logger = logging.getLogger(__name__)


async def _log_ready(application: Application) -> None:
    """post_init hook — the bot has called getMe, so its username is known."""
    logger.info("Logged in as @%s", application.bot.username)
    target = application.bot_data["settings"].target_chat_id
    if target is not None:
        logger.info("Listening for mentions in specific chat: %s", target)
    else:
        logger.info("Listening for mentions in any chat.")


def build_application(settings: RelaySettings) -> Application:
    """Build and return a configured Telegram Application.

    Registers:
      - /start  → handle_start  (welcome message)
      - /help   → handle_help   (usage guide)
      - Text messages (non-command) → handle_message (webhook relay)
      - An error handler that logs anything escaping the handlers

    concurrent_updates is enabled so a slow workflow answering one mention
    never delays the handling of another.

    Args:
        settings: Relay configuration; stored in bot_data["settings"].

    Returns:
        A fully configured Application ready for run_polling() or run_webhook().
    """
    application: Application = (
        ApplicationBuilder()
        .token(settings.telegram_bot_token.get_secret_value())
        .concurrent_updates(True)
        .post_init(_log_ready)
        .build()
    )
    application.bot_data["settings"] = settings

    # Command handlers are registered first so they take priority over the
    # catch-all text handler below.
    application.add_handler(CommandHandler("start", handle_start))
    application.add_handler(CommandHandler("help", handle_help))

    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_message))
    application.add_error_handler(handle_error)

    return application
