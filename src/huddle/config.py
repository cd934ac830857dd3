"""Application settings via pydantic-settings. Loads from environment and .env file."""

from __future__ import annotations

import logging

from pydantic import model_validator
from pydantic_settings import BaseSettings

VALID_PARTITION_MODES = frozenset({"tier", "random"})


class Settings(BaseSettings):
    """Huddle configuration.

    All values can be overridden via environment variables or .env file.
    """

    # Database
    database_url: str = "sqlite+aiosqlite:///huddle.db"

    # Environment
    huddle_env: str = "development"

    # Match generation defaults (used when a game is created without them)
    huddle_default_team_count: int = 2
    huddle_default_players_per_team: int = 5
    huddle_partition_mode: str = "tier"

    # Statistics
    huddle_mvp_limit: int = 10

    # Logging
    huddle_log_level: str = "INFO"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_match_defaults(self) -> Settings:
        """Reject defaults the partitioner would refuse anyway."""
        if self.huddle_default_team_count < 2:
            msg = "HUDDLE_DEFAULT_TEAM_COUNT must be at least 2"
            raise ValueError(msg)
        if self.huddle_default_players_per_team < 1:
            msg = "HUDDLE_DEFAULT_PLAYERS_PER_TEAM must be at least 1"
            raise ValueError(msg)
        if self.huddle_partition_mode not in VALID_PARTITION_MODES:
            msg = (
                f"HUDDLE_PARTITION_MODE must be one of {sorted(VALID_PARTITION_MODES)}, "
                f"got {self.huddle_partition_mode!r}"
            )
            raise ValueError(msg)
        return self


def configure_logging(settings: Settings) -> None:
    """Install the root log format used by scripts and embedding services."""
    logging.basicConfig(
        level=getattr(logging, settings.huddle_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
