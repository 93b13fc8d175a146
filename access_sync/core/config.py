"""Configuration management for access-sync.

Loads configuration from environment variables with .env file support.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


@dataclass
class SyncConfig:
    """Oracle, store and pacing configuration."""

    openai_api_key: str
    supabase_url: str
    supabase_key: str
    openai_model: str = "gpt-4o-mini"
    supabase_table: str = "psychedelic_access"
    store_debug: bool = False

    # Batching and pacing (seconds)
    batch_size: int = 25
    batch_pause: float = 2.0

    # Backoff (seconds)
    max_retries: int = 5
    backoff_base: float = 2.0
    backoff_cap: float = 30.0

    strict_status: bool = False  # Drop records whose status is outside AccessStatus

    @property
    def rest_url(self) -> str:
        """PostgREST base URL for the Supabase project."""
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    def validate(self) -> list[str]:
        """Validate required configuration fields.

        Returns:
            List of validation error messages, empty if valid.
        """
        errors = []
        if not self.openai_api_key:
            errors.append("OPENAI_API_KEY is required")
        if not self.supabase_url:
            errors.append("SUPABASE_URL is required")
        if not self.supabase_key:
            errors.append("SUPABASE_SERVICE_ROLE_KEY is required")
        if self.batch_size < 1:
            errors.append("SYNC_BATCH_SIZE must be at least 1")
        if self.batch_pause < 0:
            errors.append("SYNC_BATCH_PAUSE must not be negative")
        if self.max_retries < 0:
            errors.append("SYNC_MAX_RETRIES must not be negative")
        if self.backoff_base < 0 or self.backoff_cap < 0:
            errors.append("SYNC_BACKOFF_BASE and SYNC_BACKOFF_CAP must not be negative")
        return errors


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() == "true"


def get_config() -> SyncConfig:
    """Load configuration from environment variables.

    Returns:
        SyncConfig instance populated from environment.
    """
    return SyncConfig(
        openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
        supabase_url=os.environ.get("SUPABASE_URL", ""),
        supabase_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY", ""),
        openai_model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        supabase_table=os.environ.get("SUPABASE_TABLE", "psychedelic_access"),
        store_debug=_env_flag("SUPABASE_DEBUG"),
        batch_size=int(os.environ.get("SYNC_BATCH_SIZE", "25")),
        batch_pause=float(os.environ.get("SYNC_BATCH_PAUSE", "2.0")),
        max_retries=int(os.environ.get("SYNC_MAX_RETRIES", "5")),
        backoff_base=float(os.environ.get("SYNC_BACKOFF_BASE", "2.0")),
        backoff_cap=float(os.environ.get("SYNC_BACKOFF_CAP", "30.0")),
        strict_status=_env_flag("SYNC_STRICT_STATUS"),
    )
