"""
Recipe Planner configuration.

Values come from environment variables (a local .env file is loaded first).
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from recipe_planner.data.models import MergePolicy

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings."""

    anthropic_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_tokens: int = 4000
    temperature: float = 0.7
    llm_timeout: float = 120.0  # seconds, bounds a whole generation
    use_null_llm: bool = False
    data_dir: str = "data"
    merge_policy: MergePolicy = MergePolicy.OVERWRITE
    validate_cooking_topic: bool = True
    simulate_progress: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build settings from the environment.

        Args:
            env_file: Optional .env path (defaults to searching from the cwd)

        Returns:
            Settings instance
        """
        load_dotenv(env_file)

        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        if _env_bool("DEBUG", False):
            log_level = "DEBUG"

        return cls(
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or None,
            model=os.environ.get("RECIPE_MODEL", DEFAULT_MODEL),
            max_tokens=int(os.environ.get("LLM_MAX_TOKENS", "4000")),
            temperature=float(os.environ.get("LLM_TEMPERATURE", "0.7")),
            llm_timeout=float(os.environ.get("LLM_TIMEOUT", "120")),
            use_null_llm=_env_bool("USE_NULL_LLM", False),
            data_dir=os.environ.get("DATA_DIR", "data"),
            merge_policy=MergePolicy.parse(os.environ.get("MERGE_POLICY", "overwrite")),
            validate_cooking_topic=_env_bool("VALIDATE_COOKING_TOPIC", True),
            simulate_progress=_env_bool("SIMULATE_PROGRESS", True),
            log_level=log_level,
        )


def configure_logging(level: str = "INFO"):
    """Configure root logging for an entry point."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
