"""
config.py
---------
Centralised configuration management for the schema engine.

Loads settings from environment variables (with .env file support via
python-dotenv). Provides typed settings as frozen dataclasses so
configuration is immutable at runtime.

Design Decision:
    Class-level defaults mean the engine works "out of the box" without
    any .env file, while still allowing environment-based overrides for
    matcher thresholds, extra mapping rules and logging.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)


@dataclass(frozen=True)
class MatchingConfig:
    """Default thresholds and strategy for the unified model matcher."""
    name_similarity_threshold: float = field(
        default_factory=lambda: float(os.getenv("MATCH_NAME_THRESHOLD", "0.3"))
    )
    poor_match_threshold: float = field(
        default_factory=lambda: float(os.getenv("MATCH_POOR_THRESHOLD", "0.4"))
    )
    name_strategy: str = field(
        default_factory=lambda: os.getenv("MATCH_NAME_STRATEGY", "levenshtein").lower()
    )


@dataclass(frozen=True)
class EngineConfig:
    """Translation engine and logging settings."""
    mapping_rules_file: Path | None = field(
        default_factory=lambda: (
            Path(os.environ["MAPPING_RULES_FILE"])
            if os.getenv("MAPPING_RULES_FILE")
            else None
        )
    )
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper()
    )
    log_file: str | None = field(
        default_factory=lambda: os.getenv("LOG_FILE")  # None → log to stderr only
    )


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration."""
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    app_name: str = "Unified Schema Engine"
    app_version: str = "1.0.0"


def load_config() -> AppConfig:
    """
    Build and return the application configuration.

    Returns:
        AppConfig: Fully populated (and frozen) configuration object.

    Example::

        cfg = load_config()
        print(cfg.matching.name_strategy)   # "levenshtein"
        print(cfg.engine.mapping_rules_file)  # None
    """
    return AppConfig()


# Module-level singleton used throughout the application
CONFIG: AppConfig = load_config()


def get_log_level() -> int:
    """Convert string log level from config to logging module constant."""
    level = getattr(logging, CONFIG.engine.log_level, None)
    if not isinstance(level, int):
        return logging.INFO
    return level
