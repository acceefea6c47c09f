"""Answer extraction from webhook replies.

The workflow's response shape is not fixed — depending on how the "Respond to
Webhook" node is configured it may return an object, a list of items, a bare
string, or something else entirely. extract_answer() tries each known shape in
order and degrades to None rather than raising.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# Literal `"answer": "<value>"` in serialized JSON. The value may not contain a
# quote or a backslash, so escaped quotes and newlines never match. Non-ASCII
# text is serialized as-is (ensure_ascii=False) and does match.
_ANSWER_FIELD_RE = re.compile(r'"answer"\s*:\s*"([^"\\]+)"')


def _answer_field(item: Any) -> str | None:
    if isinstance(item, dict):
        value = item.get("answer")
        if isinstance(value, str) and value:
            return value
    return None


def _fallback_answer(reply: Any) -> str | None:
    try:
        serialized = json.dumps(reply, ensure_ascii=False)
    except (TypeError, ValueError):
        return None
    match = _ANSWER_FIELD_RE.search(serialized)
    return match.group(1) if match else None


def extract_answer(reply: Any) -> str | None:
    """Interpret a decoded webhook reply as a single answer string.

    Tried in order, first match wins:
      1. {"answer": "..."}
      2. [{"answer": "..."}, ...] — first item only
      3. "..." — the reply itself
      4. Any other JSON containing a literal `"answer": "..."` with a simple
         (unescaped, single-line) value

    Whitespace-only answers count as no answer.

    Args:
        reply: The body returned by WebhookClient.send().

    Returns:
        The answer text, or None if no usable answer was found.
    """
    answer = _answer_field(reply)
    if answer is None and isinstance(reply, list) and reply:
        answer = _answer_field(reply[0])
    if answer is None and isinstance(reply, str):
        answer = reply
    if answer is None:
        logger.debug("No known reply structure, trying fallback parsing")
        answer = _fallback_answer(reply)

    if answer is None or not answer.strip():
        return None
    return answer
