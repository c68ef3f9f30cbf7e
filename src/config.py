from __future__ import annotations

from functools import cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ReplaySettings(BaseSettings):
    log_level: str = "WARNING"
    # Reject dispute/resolve/chargeback rows that carry an amount
    strict: bool = False
    # Stop the replay on the first malformed row instead of skipping it
    abort_on_malformed: bool = False

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return level


@cache
def config() -> ReplaySettings:
    return ReplaySettings()
