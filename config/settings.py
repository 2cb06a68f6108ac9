"""Configuration settings and data models."""

import json
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = "tournament_config.json"


class ScoringConfig(BaseModel):
    """Point awards for match wins and championships."""

    points_per_win: int = Field(default=10, description="Points per match win")
    championship_multiplier: int = Field(
        default=3, description="Championship bonus as a multiple of points_per_win"
    )

    @field_validator("points_per_win")
    @classmethod
    def validate_points(cls, v):
        if v <= 0:
            raise ValueError("points_per_win must be positive")
        return v

    @field_validator("championship_multiplier")
    @classmethod
    def validate_multiplier(cls, v):
        if v < 1:
            raise ValueError("championship_multiplier must be at least 1")
        return v

    @property
    def championship_bonus(self) -> int:
        return self.points_per_win * self.championship_multiplier


class BracketConfig(BaseModel):
    """Bracket generation settings."""

    default_combat_duration_sec: int = Field(
        default=1800, description="Combat duration used when none is supplied"
    )
    odd_entrant_policy: Literal["drop", "bye"] = Field(
        default="drop",
        description="What happens to the unpaired entrant of an odd-sized round",
    )
    shuffle_seed: Optional[int] = Field(
        default=None, description="Fixed seed for reproducible pairings"
    )

    @field_validator("default_combat_duration_sec")
    @classmethod
    def validate_duration(cls, v):
        if v <= 0:
            raise ValueError("default_combat_duration_sec must be positive")
        return v


class RegistrationConfig(BaseModel):
    """Registration ledger settings."""

    post_tournament_block_days: int = Field(
        default=7, description="Cool-down days after a competitor's tournament ends"
    )


class StorageConfig(BaseModel):
    """SQLite storage settings."""

    db_path: str = Field(default="tournaments.db", description="SQLite database file")
    busy_timeout_sec: float = Field(
        default=5.0, description="How long to wait for the write lock"
    )

    @field_validator("busy_timeout_sec")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("busy_timeout_sec must be positive")
        return v


class SystemConfig(BaseModel):
    """System-wide configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8000, description="HTTP port")


class AppConfig(BaseModel):
    """Complete application configuration."""

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    bracket: BracketConfig = Field(default_factory=BracketConfig)
    registration: RegistrationConfig = Field(default_factory=RegistrationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    system: SystemConfig = Field(default_factory=SystemConfig)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a JSON object")

        return cls(**data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(),
                f,
                default_flow_style=False,
                indent=2,
            )


def get_default_config() -> AppConfig:
    """Load configuration from tournament_config.json, or the template if absent."""
    config_path = Path(os.environ.get("TOURNAMENT_CONFIG", DEFAULT_CONFIG_PATH))
    if config_path.exists():
        return AppConfig.load_from_file(config_path)
    return get_template_config()


def get_template_config() -> AppConfig:
    """Get template configuration for config file generation."""
    return AppConfig(
        scoring=ScoringConfig(points_per_win=10, championship_multiplier=3),
        bracket=BracketConfig(
            default_combat_duration_sec=1800,
            odd_entrant_policy="drop",
            shuffle_seed=None,
        ),
        registration=RegistrationConfig(post_tournament_block_days=7),
        storage=StorageConfig(db_path="tournaments.db", busy_timeout_sec=5.0),
        system=SystemConfig(log_level="INFO", host="0.0.0.0", port=8000),
    )
