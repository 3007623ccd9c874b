# trokito/settings.py
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from modules.brl_currency.core.denominations import DEFAULT_ACTIVE_VALUES
from modules.change_calculator.core.change import ChangeConfig
from modules.change_calculator.core.rounding import RoundingPolicy

BASE_DIR = Path(__file__).resolve().parents[1]


def _load_env() -> None:
    """
    Read ``.env`` from the repository root into ``os.environ``.
    Variables already set in the environment win; ``TROKITO_SKIP_DOTENV``
    disables the file entirely.
    """
    if (os.getenv("TROKITO_SKIP_DOTENV") or "").lower() in {"1", "true", "yes"}:
        return
    env_path = BASE_DIR / ".env"
    values = dotenv_values(env_path) if env_path.exists() else {}
    for key, value in values.items():
        if key in os.environ or value is None:
            continue
        os.environ[key] = str(value)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TROKITO_",
        env_file=None,  # .env is handled by _load_env()
        extra="ignore",
    )

    rounding_policy: str = Field(default="allow-owing")
    tolerance_cents: int = Field(default=4, ge=0)
    active_denominations: str | List[int] = Field(
        default_factory=lambda: list(DEFAULT_ACTIVE_VALUES)
    )
    # Accepted for compatibility; greedy already minimizes pieces for BRL.
    prioritize_less_coins: bool = True
    operator_name: str | None = None

    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("active_denominations", mode="before")
    @classmethod
    def _parse_denominations(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [int(item) for item in v]
        if isinstance(v, str):
            return [int(part.strip()) for part in v.split(",") if part.strip()]
        return []

    def change_config(self) -> ChangeConfig:
        return ChangeConfig(
            rounding_policy=RoundingPolicy.parse(
                self.rounding_policy, self.tolerance_cents
            ),
            active_denominations=tuple(self.active_denominations),
            prioritize_less_coins=self.prioritize_less_coins,
        )


@lru_cache()
def get_settings() -> Settings:
    _load_env()
    return Settings()


__all__ = ["Settings", "get_settings"]
