import os
from pydantic import BaseModel
from functools import lru_cache
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "Resume Batch Scorer")
    ENV: str = os.getenv("ENV", "development")
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    PIPELINE_LOG_FILE: str | None = os.getenv("PIPELINE_LOG_FILE") or None
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "app.sqlite3")
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL", f"sqlite:///{os.getenv('SQLITE_PATH', 'app.sqlite3')}")

    GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or None
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-flash-latest")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY") or None
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    LLM_TIMEOUT_SECONDS: int = int(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
    LLM_MAX_ATTEMPTS: int = int(os.getenv("LLM_MAX_ATTEMPTS", "2"))

    # provider quota: one analysis call per delay window
    ANALYSIS_DELAY_SECONDS: float = float(os.getenv("ANALYSIS_DELAY_SECONDS", "3.0"))
    MAX_INLINE_RESUME_BYTES: int = int(os.getenv("MAX_INLINE_RESUME_BYTES", str(1024 * 1024)))
    HIGH_MATCH_THRESHOLD: int = int(os.getenv("HIGH_MATCH_THRESHOLD", "80"))
    JD_DESCRIPTION_PROMPT_CHARS: int = int(os.getenv("JD_DESCRIPTION_PROMPT_CHARS", "1000"))
    PERSIST_UPLOADED_JOBS: bool = _env_bool("PERSIST_UPLOADED_JOBS", True)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
