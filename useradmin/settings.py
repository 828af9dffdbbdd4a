from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file + avatars next to the repo).
    - Every field can be overridden with an `APP_`-prefixed env var.
    """

    model_config = SettingsConfigDict(env_prefix="APP_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"

    host: str = "127.0.0.1"
    port: int = 8000

    # Password given to accounts created through POST /api/users.
    default_password: str = "123456"

    avatar_dir: str | None = None
    avatar_max_size_mb: float = 5

    verification_code_ttl_minutes: int = 5

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "useradmin.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"

    def resolved_avatar_dir(self) -> Path:
        if self.avatar_dir:
            return Path(self.avatar_dir)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "avatars"

    @property
    def avatar_max_size_bytes(self) -> int:
        return int(self.avatar_max_size_mb * 1024 * 1024)


@lru_cache
def get_settings() -> Settings:
    return Settings()
