# src/covey/adapters/config.py
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    # "memory" keeps scenarios in-process (tests, previews); "sql" uses DB_URI
    SCENARIO_STORE: Literal["memory", "sql"] = Field(default="memory")
    DB_URI: str = Field(default="sqlite:///covey.db")

    model_config = SettingsConfigDict(
        env_prefix="COVEY_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("SCENARIO_STORE", mode="before")
    @classmethod
    def _lower_store(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v


config = AppConfig()
