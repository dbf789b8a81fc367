"""Configuration and constants for toolbind."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "TOOLBIND_"

# Hrefs with these prefixes are real navigation, not actions
DEFAULT_EXTERNAL_HREF_PREFIXES = ("http://", "https://", "/")


class EngineConfig(BaseModel):
    """Engine configuration with validation."""

    debounce_delay: float = Field(
        default=0.3,
        ge=0.0,
        le=10.0,
        description="Quiet period in seconds before a debounced call fires",
    )
    max_text_length: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum length of derived element label text",
    )
    inferred_server_name: str = Field(
        default="inferred",
        min_length=1,
        description="Server name assigned to inferred tools and their mappings",
    )
    external_href_prefixes: tuple[str, ...] = Field(
        default=DEFAULT_EXTERNAL_HREF_PREFIXES,
        description="Link href prefixes treated as navigation rather than actions",
    )

    @field_validator("external_href_prefixes")
    @classmethod
    def validate_prefixes(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop blank prefixes, which would exclude every link."""
        return tuple(p for p in v if p)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config from TOOLBIND_* environment variables."""
        values: dict[str, object] = {}
        if delay := os.environ.get(f"{ENV_PREFIX}DEBOUNCE_DELAY"):
            values["debounce_delay"] = delay
        if length := os.environ.get(f"{ENV_PREFIX}MAX_TEXT_LENGTH"):
            values["max_text_length"] = length
        if server := os.environ.get(f"{ENV_PREFIX}INFERRED_SERVER_NAME"):
            values["inferred_server_name"] = server
        if prefixes := os.environ.get(f"{ENV_PREFIX}EXTERNAL_HREF_PREFIXES"):
            values["external_href_prefixes"] = tuple(p.strip() for p in prefixes.split(","))
        return cls.model_validate(values)


_default_config = EngineConfig()


def get_config() -> EngineConfig:
    return _default_config
