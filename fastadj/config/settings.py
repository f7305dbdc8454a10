"""Search configuration using Pydantic Settings."""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

UNBOUNDED_DEPTH = -1


def resolve_depth(depth: int, ceiling: int) -> int:
    """Map the unbounded sentinel to the ceiling; other depths pass through."""
    return ceiling if depth == UNBOUNDED_DEPTH else depth


class SearchSettings(BaseSettings):
    """Adjacency search settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FASTADJ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Fast Adjacency Search"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    verbose: bool = False

    # Depth escalation
    max_depth: int = Field(default=UNBOUNDED_DEPTH, ge=UNBOUNDED_DEPTH)
    unbounded_depth_ceiling: int = Field(default=1000, ge=0)

    # Sepsets
    record_sepsets: bool = True
    sepsets_empty_if_unset: bool = True  # Orientation rules need a total lookup

    # Depth-0 screening
    depth0_policy: Literal["unconditional", "local_markov"] = "unconditional"

    # Scheduling
    chunk_size: int = Field(default=100, ge=1)
    n_workers: int | None = Field(default=None, ge=1)  # None -> CPU count
    progress_interval: int = Field(default=1000, ge=1)

    @model_validator(mode="after")
    def _warn_on_unusual_config(self) -> "SearchSettings":
        """Warn about settings that are valid but probably unintended."""
        if self.max_depth > self.unbounded_depth_ceiling:
            logger.warning(
                "MAX_DEPTH exceeds UNBOUNDED_DEPTH_CEILING; the ceiling is never reached"
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def effective_max_depth(self) -> int:
        """Maximum depth with the unbounded sentinel resolved."""
        return resolve_depth(self.max_depth, self.unbounded_depth_ceiling)


@lru_cache
def get_settings() -> SearchSettings:
    """Get cached settings instance."""
    return SearchSettings()
