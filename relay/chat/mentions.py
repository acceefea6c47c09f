"""Mention detection and the validation gate for incoming messages.

A Telegram message reaches the relay only if it is addressed to the bot:

  - an ``@username`` mention entity naming the bot
  - a text-mention entity linking to the bot's user (for bots without a
    username in the text, e.g. picked from the member list)
  - a reply to one of the bot's own messages
  - any message in a private chat with the bot

mention_from_update() reduces an Update to a plain IncomingMention so the gate
in question_from_mention() can be tested without Telegram objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from telegram import MessageEntity
from telegram.constants import ChatType

if TYPE_CHECKING:
    from telegram import Bot, Message, Update

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomingMention:
    """Platform-neutral view of one inbound message. Never persisted."""

    author_id: str
    author_name: str
    author_is_bot: bool
    channel_id: str
    raw_text: str
    mentions_self: bool
    mention_token: str | None = None
    """Literal text addressing the bot (e.g. "@relay_bot"), stripped from the question."""


def _find_mention_token(message: Message, bot: Bot) -> str | None:
    """Return the entity text that addresses the bot, or None."""
    bot_handle = f"@{bot.username}".lower() if bot.username else None
    entities = message.parse_entities([MessageEntity.MENTION, MessageEntity.TEXT_MENTION])
    for entity, text in entities.items():
        if entity.type == MessageEntity.MENTION and text.lower() == bot_handle:
            return text
        if (
            entity.type == MessageEntity.TEXT_MENTION
            and entity.user is not None
            and entity.user.id == bot.id
        ):
            return text
    return None


def _is_reply_to_bot(message: Message, bot: Bot) -> bool:
    replied = message.reply_to_message
    return bool(replied and replied.from_user and replied.from_user.id == bot.id)


def mention_from_update(update: Update, bot: Bot) -> IncomingMention | None:
    """Build an IncomingMention from a Telegram update.

    Returns None for updates that carry no text message or no sender (channel
    posts, service messages) — there is nobody to answer.

    Args:
        update: The incoming Telegram update.
        bot: The running bot, used to recognise its own username and id.
    """
    message = update.effective_message
    if message is None or message.text is None or message.from_user is None:
        return None

    author = message.from_user
    token = _find_mention_token(message, bot)
    mentions_self = (
        token is not None
        or _is_reply_to_bot(message, bot)
        or message.chat.type == ChatType.PRIVATE
    )
    return IncomingMention(
        author_id=str(author.id),
        author_name=author.username or author.full_name,
        author_is_bot=author.is_bot,
        channel_id=str(message.chat.id),
        raw_text=message.text,
        mentions_self=mentions_self,
        mention_token=token,
    )


def strip_mention(text: str, token: str | None) -> str:
    """Remove the first occurrence of the mention token and trim whitespace."""
    if token:
        text = text.replace(token, "", 1)
    return text.strip()


def question_from_mention(mention: IncomingMention, target_chat_id: int | None = None) -> str | None:
    """Apply the validation gate and return the sanitized question.

    Checks, in order:
      1. Messages from bots are ignored (prevents bot-to-bot loops).
      2. Messages not addressed to this bot are ignored.
      3. With a target chat configured, mentions elsewhere are ignored (logged).
      4. A mention with nothing left after stripping it yields "" — the caller
         decides whether to send a usage hint, but never forwards it.

    Args:
        mention: The inbound message.
        target_chat_id: Optional single chat the relay is restricted to.

    Returns:
        The question text; an empty string when the bot was addressed without
        a question; None if the message must be ignored.
    """
    if mention.author_is_bot or not mention.mentions_self:
        return None

    if target_chat_id is not None and mention.channel_id != str(target_chat_id):
        logger.info("Ignoring mention in wrong chat: %s", mention.channel_id)
        return None

    question = strip_mention(mention.raw_text, mention.mention_token)
    if not question:
        logger.info("Bot mentioned without a question by %s.", mention.author_name)
    return question
