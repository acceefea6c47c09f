"""Telegram chat integration layer for the mention relay.

Public API:
  build_application  — construct a fully-wired PTB Application
  handle_message     — the mention handler (for testing / custom wiring)
  split_answer       — split a long answer into ordered chunks
  format_response    — the messages actually sent for an answer

Typical usage:
    from relay.chat import build_application
    app = build_application(settings)
    app.run_polling()
"""

from relay.chat.bot import build_application
from relay.chat.handlers import format_response, handle_message, split_answer

__all__ = [
    "build_application",
    "format_response",
    "handle_message",
    "split_answer",
]
