"""
Centralised application settings loaded from environment / .env file.
"""
from __future__ import annotations

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
_PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    # ── Postgres ─────────────────────────────────────────
    postgres_user: str = "nlquery"
    postgres_password: str = "nlquery_pw"
    postgres_db: str = "blog"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    database_url_override: str = Field("", validation_alias="DATABASE_URL")
    db_statement_timeout_ms: int = 5_000

    # ── LLM ──────────────────────────────────────────────
    llm_provider: str = "mock"  # mock | ollama | gemini | openai | anthropic
    llm_model: str = "gemma3:1b"
    llm_base_url: str = "http://127.0.0.1:11434/api"
    llm_api_key: str = ""  # gemini
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    llm_timeout_s: float = 20.0
    chat_timeout_s: float = 30.0

    # ── App ──────────────────────────────────────────────
    api_port: int = 8000
    log_level: str = "INFO"
    whitelist_path: str = str(_PROJECT_ROOT / "whitelist" / "schema.yml")

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
