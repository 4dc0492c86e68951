"""Configuration settings and data models."""

import json
import os
import shutil
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator


class DebateLimits(BaseModel):
    """Bounds applied to moderator-supplied debate content."""

    max_title_length: int = Field(default=100, gt=0, description="Maximum debate title length")
    max_description_length: int = Field(
        default=1000, gt=0, description="Maximum debate description length"
    )
    max_question_length: int = Field(default=200, gt=0, description="Maximum question title length")
    max_closed_answers: int = Field(
        default=10, gt=0, description="Maximum number of answer choices for a closed question"
    )
    max_suggestion_length: int = Field(
        default=200, gt=0, description="Maximum audience suggestion length"
    )


class PersistenceConfig(BaseModel):
    """Discussion and administrator storage configuration."""

    database_path: str = Field(default="moderation.db", description="SQLite database file")
    timeout_seconds: float = Field(
        default=5.0, description="Upper bound for a single persistence call"
    )

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


class ServerConfig(BaseModel):
    """Web server settings."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class AppConfig(BaseModel):
    """Complete application configuration."""

    debate: DebateLimits = Field(default_factory=DebateLimits)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a JSON object: {config_path}")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_unset=True),
                f,
                default_flow_style=False,
                indent=2,
            )

    def apply_environment(self) -> "AppConfig":
        """Apply environment variable overrides (PORT, MODERATION_DB_PATH)."""
        port = os.environ.get("PORT")
        if port:
            self.server.port = int(port)

        db_path = os.environ.get("MODERATION_DB_PATH")
        if db_path:
            self.persistence.database_path = db_path

        return self


def get_default_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from moderation_config.json, creating it if needed."""
    if config_path is None:
        config_path = Path("moderation_config.json")

    if not config_path.exists():
        # Auto-create from moderation_config.example.json if it exists
        example_path = config_path.with_name("moderation_config.example.json")
        if example_path.exists():
            shutil.copy2(example_path, config_path)
        else:
            template_config = get_template_config()
            with open(config_path, "w", encoding="utf-8") as f:
                json.dump(template_config.model_dump(), f, indent=2)

    return AppConfig.load_from_file(config_path).apply_environment()


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        debate=DebateLimits(
            max_title_length=100,
            max_description_length=1000,
            max_question_length=200,
            max_closed_answers=10,
            max_suggestion_length=200,
        ),
        persistence=PersistenceConfig(
            database_path="moderation.db",
            timeout_seconds=5.0,
        ),
        server=ServerConfig(
            host="0.0.0.0",
            port=8000,
            log_level="INFO",
        ),
    )
