from __future__ import annotations

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"
DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent / "data" / "shops.json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # CORS allow origins (comma-separated). Default empty (no cross-origin).
    CORS_ALLOW_ORIGINS: str = ""

    # JSON snapshot of bookable shops (defaults to the bundled demo catalog)
    CATALOG_PATH: Path | None = None

    # Query interpreter (chat completions endpoint)
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_TIMEOUT_SECONDS: float = 15.0
    OPENAI_CONNECT_TIMEOUT_SECONDS: float = 5.0
    SHOP_SEARCH_GPT_MODEL: str = "gpt-4o-mini"
    SHOP_SEARCH_MAX_TOKENS: int = 500
    SHOP_SEARCH_INTERPRETER_TIMEOUT_SECONDS: float = 20.0
    SHOP_SEARCH_MAX_FAILURES: int = 3
    SHOP_SEARCH_COOLDOWN_SECONDS: float = 300.0

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def allow_origins(self) -> list[str]:
        s = (self.CORS_ALLOW_ORIGINS or "").strip()
        if s == "*":
            return ["*"]
        if s == "":
            return []
        return [part.strip() for part in s.split(",") if part.strip()]

    @property
    def catalog_path(self) -> Path:
        # Blank values in `.env` would otherwise resolve to the working directory.
        raw_env = os.getenv("CATALOG_PATH")
        if raw_env is not None and raw_env.strip():
            return Path(raw_env.strip()).expanduser().resolve()
        if self.CATALOG_PATH is not None:
            candidate = str(self.CATALOG_PATH).strip()
            if candidate and candidate not in {".", "./", ".\\"}:
                return Path(candidate).expanduser().resolve()
        return DEFAULT_CATALOG_PATH

    @property
    def interpreter_enabled(self) -> bool:
        return bool((self.OPENAI_API_KEY or "").strip())


settings = Settings()
