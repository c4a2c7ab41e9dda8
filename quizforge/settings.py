from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---------- model API ----------
    # No key => mock data only, never touches the network.
    LLM_API_KEY: str | None = None
    LLM_BASE_URL: str = "https://api.groq.com/openai/v1"
    # Tried in order; each model has its own quota pool upstream.
    LLM_MODELS: list[str] = ["llama-3.3-70b-versatile", "llama-3.1-8b-instant"]
    LLM_TIMEOUT_SECONDS: float = 15.0
    LLM_TEMPERATURE: float = 0.8
    LLM_MAX_TOKENS: int = 4000

    # ---------- limits ----------
    MAX_UPLOAD_KB: int = 5120
    MAX_TEXT_LENGTH: int = 6000
    MAX_SOURCE_TEXT_LENGTH: int = 8000
    MAX_PROMPT_LENGTH: int = 1000
    MAX_URL_LENGTH: int = 2048
    MAX_BULK_LEVELS: int = 6

    # ---------- outbound timeouts (seconds) ----------
    WEBPAGE_TIMEOUT_SECONDS: float = 12.0
    WATCH_PAGE_TIMEOUT_SECONDS: float = 15.0
    TIMEDTEXT_TIMEOUT_SECONDS: float = 8.0
    CAPTION_TIMEOUT_SECONDS: float = 10.0
    OEMBED_TIMEOUT_SECONDS: float = 5.0

    # ---------- content ----------
    CAPTION_LANGUAGES: list[str] = ["fr", "en", "ar", "es", "de"]
    CONTENT_REGION: str = "Morocco"

    # ---------- web ----------
    ALLOW_ORIGINS: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]
    RATE_LIMIT: str = "60/minute"
    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # ---------- supabase ----------
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_JWT_SECRET: str = ""


settings = Settings()
