"""Pydantic-based configuration helpers for the Slack Approval Bot."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class AppSettings(BaseModel):
    """Settings read once at start-up and passed explicitly to the application."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    # An empty secret is accepted here so the server can start and refuse traffic.
    signing_secret: str = Field("", alias="SLACK_SIGNING_SECRET")
    port: int = Field(3000, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("signing_secret", mode="before")
    @classmethod
    def _strip_secret(cls, value: str | None) -> str:
        if value is None:
            return ""
        return value.strip()

    @field_validator("port")
    @classmethod
    def _ensure_valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("PORT must be between 1 and 65535")
        return value

    @field_validator("log_level")
    @classmethod
    def _ensure_known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def has_signing_secret(self) -> bool:
        return bool(self.signing_secret)


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of offending env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        invalid = [str(error["loc"][0]) for error in exc.errors()]
        message = (
            "Missing or invalid environment variables: "
            f"{_format_missing(invalid)}"
        )
        raise RuntimeError(message) from exc
