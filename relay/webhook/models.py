"""Pydantic models for the webhook boundary.

An OutgoingRequest is built once per handled mention and serialized to the
JSON body the workflow endpoint expects. The wire format uses camelCase keys
(channelId, userId, userName) — the Python side uses snake_case and the alias
generator bridges the two.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class OutgoingRequest(BaseModel):
    """Question forwarded to the workflow endpoint.

    Frozen — nothing downstream may rewrite the question or identity once the
    mention has passed validation.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    question: str
    channel_id: str
    user_id: str
    user_name: str

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        if not v.strip():
            msg = "question must not be empty"
            raise ValueError(msg)
        return v

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready body: {"question", "channelId", "userId", "userName"}."""
        return self.model_dump(by_alias=True)
