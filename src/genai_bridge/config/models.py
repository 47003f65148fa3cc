"""
Configuration Models
====================

Type-safe Pydantic model for the bridge configuration.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator

from genai_bridge.core import Default


class BridgeConfig(BaseModel):
    """Connection and sampling settings for the flat-protocol backend."""

    api_key: str = Field(default="", description="Backend API key")
    base_url: str | None = Field(default=None, description="Backend endpoint (OpenAI-compatible)")
    model: str = Field(default="", description="Backend model identifier")
    temperature: float = Field(default=Default.TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(default=Default.MAX_TOKENS, gt=0)
    top_p: float = Field(default=Default.TOP_P, ge=0.0, le=1.0)
    include_usage: bool = Field(
        default=True, description="Request usage statistics on streamed responses"
    )
    timeout: float = Field(default=Default.TIMEOUT, gt=0, description="Request timeout in seconds")
    max_connections: int = Field(default=Default.MAX_CONNECTIONS, gt=0)
    max_keepalive: int = Field(default=Default.MAX_KEEPALIVE, ge=0)
    user_agent: str | None = None
    log_level: str | None = Field(
        default=None, description="Level for the genai_bridge logger; left alone when unset"
    )

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("base_url")
    @classmethod
    def _empty_url_is_default(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str | None) -> str | None:
        if not v:
            return None
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def sampling_params(self) -> dict[str, float | int]:
        """Sampling parameters sent with every completion request."""
        return {
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "top_p": self.top_p,
        }
