"""Entry point for the mention relay bot.

Starts the bot using long polling. Intended to be run as a module:

    python -m relay.chat

The bot token, webhook URL and all other configuration are read from
environment variables (or a .env file in development).

Logfire is configured here, and httpx is instrumented so every webhook call
shows up as a span alongside the bot's logs.
"""

from __future__ import annotations

import logging

import logfire
from telegram import Update

from relay.chat.bot import build_application
from relay.config import get_settings

# ── Logging ───────────────────────────────────────────────────────────────────

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
)
# httpx logs every request at INFO, which floods the log under long polling.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


# ── Entrypoint ────────────────────────────────────────────────────────────────


def main() -> None:
    """Start the relay bot with long polling.

    Reads configuration from RelaySettings (env vars / .env file).
    Configures Logfire tracing, then runs the bot until interrupted (Ctrl-C
    or SIGTERM).
    """
    settings = get_settings()

    # Logfire token is optional; without it logfire runs in local/dev mode.
    logfire_token = settings.logfire_token
    logfire.configure(
        token=logfire_token.get_secret_value() if logfire_token else None,
        service_name="mention-relay",
    )
    logfire.instrument_httpx()

    logger.info("Starting mention relay (webhook: %s)", settings.webhook_url)

    application = build_application(settings)

    # run_polling blocks until the process receives SIGINT / SIGTERM.
    application.run_polling(
        allowed_updates=Update.ALL_TYPES,
        drop_pending_updates=True,  # ignore mentions queued while the bot was offline
    )


if __name__ == "__main__":
    main()
