"""Telegram message handlers for the mention relay.

Responsibilities:
  - Gate incoming messages: only human mentions of this bot, in scope, with a question
  - Forward the question to the workflow webhook
  - Keep the user informed while waiting (typing ticker + slow-response notice)
  - Split long answers into platform-sized chunks, sent in order
  - Handle errors gracefully — users never see raw tracebacks or webhook bodies

Architecture decisions reflected here:
  - The handler is the boundary between Telegram and the webhook — it owns error
    handling. Nothing raised below it escapes to PTB.
  - No state is kept between mentions. Settings and the webhook client are read
    from application.bot_data, which build_application() populates.
  - Mentions are processed concurrently (concurrent_updates in bot.py); each
    handler invocation owns its own ProgressFeedback timers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from telegram.constants import ChatAction

from relay.chat.feedback import ProgressFeedback
from relay.chat.mentions import mention_from_update, question_from_mention
from relay.webhook.client import NetworkError, RemoteError, WebhookClient
from relay.webhook.extract import extract_answer
from relay.webhook.models import OutgoingRequest

if TYPE_CHECKING:
    from telegram import Bot, Message, Update
    from telegram.ext import Application, ContextTypes

    from relay.config import RelaySettings

logger = logging.getLogger(__name__)

# Answers up to this length are sent as a single message.
PLATFORM_MAX_MESSAGE_LEN: int = 2000

# Longer answers are cut into chunks of at most this many characters.
CHUNK_TARGET_LEN: int = 1900

SLOW_NOTICE_TEXT = "⏳ I'm still working on your request. This might take a bit longer than usual."
NO_ANSWER_TEXT = "I did not receive a valid answer from my workflow."
FAILURE_TEXT = "⚠️ Oops, something went wrong when communicating with my workflow. Please try again later."
USAGE_HINT_TEXT = "Mention me and ask a question, e.g. `@MyBot How are you?`"


# ── Response formatting ───────────────────────────────────────────────────────


def split_answer(answer: str, limit: int = CHUNK_TARGET_LEN) -> list[str]:
    """Split an answer into chunks of at most ``limit`` characters.

    Splitting strategy, per chunk:
      1. If the rest fits, it is the last chunk.
      2. Otherwise cut at the last paragraph break ("\\n\\n") in the window,
         if it lies past the window's midpoint.
      3. Otherwise cut just after the last sentence end (". ") past the midpoint.
      4. Otherwise hard-cut at ``limit``, mid-word if need be.

    Nothing is trimmed: "".join(chunks) == answer.

    Args:
        answer: The full answer text.
        limit: Maximum chunk length.

    Returns:
        A list of strings, each at most ``limit`` characters.
    """
    if limit < 1:
        msg = f"limit must be positive, got {limit}"
        raise ValueError(msg)
    if len(answer) <= limit:
        return [answer]

    chunks: list[str] = []
    remaining = answer

    while len(remaining) > limit:
        # A paragraph break may start exactly at the limit; the cut excludes it.
        split_at = remaining.rfind("\n\n", 0, limit + 2)
        if split_at <= limit / 2:
            sentence_end = remaining.rfind(". ", 0, limit + 1)
            split_at = sentence_end + 1 if sentence_end > limit / 2 else limit

        chunks.append(remaining[:split_at])
        remaining = remaining[split_at:]

    if remaining:
        chunks.append(remaining)

    return chunks


def format_response(answer: str) -> list[str]:
    """Return the messages to send for an answer.

    Answers that fit in one platform message are sent whole; longer ones are
    split with split_answer(), leaving headroom below the platform ceiling.
    """
    if len(answer) <= PLATFORM_MAX_MESSAGE_LEN:
        return [answer]
    return split_answer(answer, CHUNK_TARGET_LEN)


# ── Shared application state ──────────────────────────────────────────────────


def _get_settings(application: Application) -> RelaySettings:
    return application.bot_data["settings"]


def _get_webhook_client(application: Application) -> WebhookClient:
    """Return the WebhookClient for this application, creating it if needed.

    The client only carries the URL and timeout — it opens a fresh HTTP
    connection per call, so sharing it across mentions shares no state.
    """
    client = application.bot_data.get("webhook_client")
    if client is None:
        settings = _get_settings(application)
        client = WebhookClient(settings.webhook_url, settings.webhook_timeout_seconds)
        application.bot_data["webhook_client"] = client
    return client


def _thread_kwargs(message: Message) -> dict[str, Any]:
    # Forum topics need the thread id, otherwise messages land in "General".
    if message.is_topic_message:
        return {"message_thread_id": message.message_thread_id}
    return {}


# ── Sending ───────────────────────────────────────────────────────────────────


async def _send_answer(message: Message, bot: Bot, chunks: list[str], delay: float) -> None:
    """Reply with the first chunk, then post the rest in order with a short pause."""
    await message.reply_text(chunks[0])
    logger.info("Sent answer (%d chars, %d chunk(s))", len(chunks[0]), len(chunks))

    for index, chunk in enumerate(chunks[1:], start=2):
        # Pause between messages to stay clear of Telegram's flood limits.
        await asyncio.sleep(delay)
        await bot.send_message(chat_id=message.chat.id, text=chunk, **_thread_kwargs(message))
        logger.info("Sent chunk %d of %d (%d chars)", index, len(chunks), len(chunk))


async def _reply_failure(message: Message) -> None:
    try:
        await message.reply_text(FAILURE_TEXT)
    except Exception:
        logger.exception("Failed to send the failure message to chat %s", message.chat.id)


# ── Handlers ──────────────────────────────────────────────────────────────────


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Relay a mention to the workflow webhook and post its answer.

    Flow:
      1. Gate: skip bots, messages not addressed to us, other chats, empty questions.
      2. Start the typing ticker and slow-response notice.
      3. POST the question to the webhook.
      4. Stop both timers — on every path out of the call.
      5. Extract the answer and send it, split into chunks if needed.
      6. On any exception, reply with a fixed apology — never propagate.

    Args:
        update: The incoming Telegram update.
        context: PTB handler context (provides context.bot and bot_data).
    """
    settings = _get_settings(context.application)

    # 1. Gate.
    mention = mention_from_update(update, context.bot)
    if mention is None:
        return
    question = question_from_mention(mention, settings.target_chat_id)
    if question is None:
        return

    # mention_from_update only succeeds for updates carrying a message.
    message = update.effective_message
    if message is None:
        raise ValueError("handle_message called on an update with no effective_message")

    if not question:
        if settings.send_usage_hint:
            await message.reply_text(USAGE_HINT_TEXT)
        return

    logger.info(
        "Received question from chat %s by %s: %r",
        mention.channel_id,
        mention.author_name,
        question,
    )
    request = OutgoingRequest(
        question=question,
        channel_id=mention.channel_id,
        user_id=mention.author_id,
        user_name=mention.author_name,
    )
    client = _get_webhook_client(context.application)

    async def send_typing() -> None:
        await context.bot.send_chat_action(
            chat_id=message.chat.id, action=ChatAction.TYPING, **_thread_kwargs(message)
        )

    async def send_notice() -> None:
        await message.reply_text(SLOW_NOTICE_TEXT)

    try:
        # 2–4. Both timers are cancelled when the block exits, however it exits.
        async with ProgressFeedback(
            send_typing,
            send_notice,
            typing_interval=settings.typing_interval_seconds,
            notice_delay=settings.slow_notice_seconds,
        ):
            reply = await client.send(request)

        logger.debug("Complete response from webhook: %r", reply)

        # 5. Extract and send.
        answer = extract_answer(reply)
        if answer is None:
            logger.warning("Received empty or invalid answer structure from webhook: %r", reply)
            await message.reply_text(NO_ANSWER_TEXT)
            return

        await _send_answer(message, context.bot, format_response(answer), settings.chunk_delay_seconds)

    # 6. Classify for the log; the user always gets the same short message.
    except RemoteError as exc:
        logger.error("Webhook responded with status %s: %s", exc.status, exc.body)
        await _reply_failure(message)
    except NetworkError:
        logger.exception("No response received from webhook for chat %s", mention.channel_id)
        await _reply_failure(message)
    except Exception:
        logger.exception("Error setting up webhook request or sending the answer")
        await _reply_failure(message)


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the /start command.

    Sends a static welcome message. Does not call the webhook.
    """
    welcome = (
        "👋 Hi! I pass your questions on to a workflow and bring back its answer.\n\n"
        "In a group, mention me with your question, e.g. `@MyBot How are you?` "
        "or reply to one of my messages. In a private chat, just write.\n\n"
        "Type /help for more information."
    )
    if update.effective_message is None:
        raise ValueError("handle_start called on an update with no effective_message")
    await update.effective_message.reply_text(welcome)


async def handle_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the /help command. Sends a concise usage guide."""
    help_text = (
        "🛠 Help\n\n"
        "• Ask: mention me followed by your question\n"
        "• Follow up: reply to one of my answers\n"
        "• Long answers arrive as several messages, in order\n"
        "• Slow workflows: I keep typing and let you know after a while\n\n"
        "Commands:\n"
        "/start — welcome message\n"
        "/help — this message"
    )
    if update.effective_message is None:
        raise ValueError("handle_help called on an update with no effective_message")
    await update.effective_message.reply_text(help_text)


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log anything that still escapes a handler (e.g. a failed /help reply)."""
    logger.error("Unhandled error while processing update %r", update, exc_info=context.error)
