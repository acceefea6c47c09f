"""Relay configuration — centralized environment variable management.

All runtime configuration comes from environment variables (or a .env file in
development). This module is the single place where those variables are
declared, validated, and typed.

No module should call os.environ directly — import settings from here instead.

Usage:
    from relay.config import get_settings

    settings = get_settings()
    url = settings.webhook_url

Environment variables:

  Required:
    TELEGRAM_BOT_TOKEN       — Telegram Bot API token for the chat layer.
    WEBHOOK_URL              — Workflow endpoint that receives each question
                               (e.g. an n8n "Webhook" node production URL).

  Optional:
    TARGET_CHAT_ID           — Only answer mentions in this chat. Unset means
                               every chat the bot is a member of.
    WEBHOOK_TIMEOUT_SECONDS  — Upper bound on a single webhook call. Default: 300.
    TYPING_INTERVAL_SECONDS  — Period of the "typing" chat action. Default: 5.
    SLOW_NOTICE_SECONDS      — Delay before the "still working" notice. Default: 20.
    CHUNK_DELAY_SECONDS      — Pause between follow-up chunks of a long answer.
                               Default: 1.
    SEND_USAGE_HINT          — Reply with a usage hint when the bot is mentioned
                               without a question. Default: false.
    LOGFIRE_TOKEN            — Logfire project token for observability.
                               If unset, logfire runs in local/dev mode.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """Centralized configuration for the mention relay.

    Field names map to env vars by uppercasing: webhook_url → WEBHOOK_URL.

    Instantiate via get_settings() to benefit from caching.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # ── Chat integration ─────────────────────────────────────────────────────

    telegram_bot_token: SecretStr
    """Telegram Bot API token. SecretStr prevents accidental logging."""

    target_chat_id: int | None = None
    """Restrict the relay to a single chat. Group and supergroup IDs are negative."""

    send_usage_hint: bool = False
    """Reply with a short hint when the bot is mentioned with no question."""

    # ── Webhook ──────────────────────────────────────────────────────────────

    webhook_url: str
    """Endpoint that receives {"question", "channelId", "userId", "userName"}."""

    webhook_timeout_seconds: float = Field(default=300.0, gt=0)
    """Workflows can run LLM chains and tool calls — five minutes is the ceiling."""

    # ── Feedback timing ──────────────────────────────────────────────────────

    typing_interval_seconds: float = Field(default=5.0, gt=0)
    """Telegram clears the typing status after ~5s, so re-send at that period."""

    slow_notice_seconds: float = Field(default=20.0, gt=0)
    chunk_delay_seconds: float = Field(default=1.0, ge=0)

    # ── Observability ────────────────────────────────────────────────────────

    logfire_token: SecretStr | None = None
    """Logfire project token. Optional — if unset, logfire runs in local mode."""

    # ── Validators ───────────────────────────────────────────────────────────

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            msg = f"WEBHOOK_URL must be an http:// or https:// URL, got '{v}'."
            raise ValueError(msg)
        return v


@lru_cache(maxsize=1)
def get_settings() -> RelaySettings:
    """Return the cached RelaySettings instance.

    Reads from environment on first call, then caches for the process lifetime.
    Call clear_settings_cache() in tests to reset between test cases.
    """
    return RelaySettings()  # pyright: ignore[reportCallIssue]  (BaseSettings reads from env)


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Use in tests that need to vary environment variables between cases:

        def test_something(monkeypatch):
            monkeypatch.setenv("TARGET_CHAT_ID", "-100123")
            clear_settings_cache()
            settings = get_settings()
            ...
    """
    get_settings.cache_clear()
