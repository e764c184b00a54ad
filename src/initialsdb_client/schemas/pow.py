"""Schemas related to proof-of-work challenges."""
from __future__ import annotations

import base64
import binascii

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PowChallenge(BaseModel):
    """Challenge payload issued by the board before a listing can be created.

    A challenge is single use: once a solve or submit attempt fails, a fresh
    one must be requested.
    """

    challenge: str = Field(..., description="Base64-encoded challenge payload")
    difficulty: int = Field(..., ge=0, description="Required leading zero bits")
    ttl_secs: int = Field(..., description="Seconds until the challenge expires")
    token: str = Field(..., description="Opaque server token bound to this challenge")

    model_config = ConfigDict(frozen=True)

    @field_validator("challenge")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("challenge is not valid base64") from exc
        return value

    @property
    def challenge_bytes(self) -> bytes:
        """Return the decoded challenge payload."""
        return base64.b64decode(self.challenge)
