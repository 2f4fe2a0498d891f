"""Configuration settings for agentguard."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or overrides."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, populate_by_name=True
    )

    iteration_limit: int = Field(
        default=5, gt=0, validation_alias="AGENTGUARD_ITERATION_LIMIT"
    )
    detect_planning_prose: bool = Field(
        default=False, validation_alias="AGENTGUARD_DETECT_PLANNING_PROSE"
    )
    log_level: str = Field(default="INFO", validation_alias="AGENTGUARD_LOG_LEVEL")
    skill_dirs: str = Field(default="", validation_alias="AGENTGUARD_SKILL_DIRS")
    trace_dir: str | None = Field(default=None, validation_alias="AGENTGUARD_TRACE_DIR")
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    openai_model: str = Field(default="gpt-4.1-mini", validation_alias="OPENAI_MODEL")
    openai_timeout_seconds: int = Field(
        default=30, validation_alias="OPENAI_TIMEOUT_SECONDS"
    )

    def skill_paths(self) -> list[Path]:
        return [Path(entry) for entry in self.skill_dirs.split(os.pathsep) if entry.strip()]
