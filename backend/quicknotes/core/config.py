"""Application settings (pydantic-settings).

Values come from `QUICKNOTES_*` environment variables or a `.env` file at the
repository root. A `Settings` instance is built once and handed to
`create_app`; nothing else reads the environment.
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# repository_root/.env and repository_root/data (we are in backend/quicknotes/core)
REPO_ROOT = Path(__file__).resolve().parents[3]
ENV_FILE = REPO_ROOT / ".env"
DEFAULT_DATA_DIR = REPO_ROOT / "data"


class Settings(BaseSettings):
    # App
    app_name: str = "QuickNotes API"
    log_level: str = "INFO"

    # Storage backend
    notes_backend: Literal["local", "rest"] = "local"
    data_dir: Path = DEFAULT_DATA_DIR

    # Remote table (PostgREST / Supabase)
    rest_url: Optional[str] = None
    rest_api_key: Optional[str] = None
    rest_table: str = "notes"
    rest_timeout_seconds: float = 10.0

    # Auth / JWT
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_exp_minutes: int = 15
    bcrypt_rounds: Optional[int] = None
    # dev/tests only: accept X-User-Id when no bearer token is sent
    trust_user_header: bool = False

    # List behaviour
    default_page_size: int = Field(10, ge=1, le=100)
    search_debounce_seconds: float = 0.3

    # Connection status polling
    health_check_interval_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_prefix="QUICKNOTES_",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def rest_configured(self) -> bool:
        return bool(self.rest_url and self.rest_api_key)
