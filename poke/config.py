"""
Configuration settings for poke.

Uses Pydantic Settings to load environment variables for logging, input
decoding, SQL parsing and the record assembly policies. Values can also be
provided through a local `.env` file.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    log_level: str = Field("WARNING", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Input
    input_encoding: str = Field("utf-8", alias="POKE_INPUT_ENCODING")

    # Parsing
    sql_dialect: str = Field("mysql", alias="POKE_SQL_DIALECT")

    # Assembly policies
    on_field_error: Literal["abort", "skip"] = Field("abort", alias="POKE_ON_FIELD_ERROR")
    query_separator: str = Field("", alias="POKE_QUERY_SEPARATOR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
