from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """
    Welfare admin service settings, read from `WELFARE_*` environment variables.

    db_url:
        where applications, beneficiaries, payments and the region tree live.
        Unset means a `welfare.db` SQLite file next to the package.
    security_config_path:
        the YAML route rules plus the scope policy (financial access for
        state_admin, descendant expansion). Unset means `config/security_config.yaml`.
    seed_demo_data:
        load the Kerala demo hierarchy and users on startup when the database is empty.
    """

    model_config = SettingsConfigDict(env_prefix="WELFARE_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"
    seed_demo_data: bool = True

    def resolved_db_url(self) -> str:
        return self.db_url or f"sqlite:///{REPO_ROOT / 'welfare.db'}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)
        return REPO_ROOT / "config" / "security_config.yaml"


@lru_cache
def get_settings() -> Settings:
    return Settings()
