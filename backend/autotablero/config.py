# Autotablero - Configuration
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application
    APP_NAME: str = "Autotablero"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api"

    # Column profiler
    PROFILE_SAMPLE_SIZE: int = 50
    DIMENSION_MAX_UNIQUE: int = 50

    # Domain classifier
    OPERATIONAL_OVERRIDE_THRESHOLD: int = 25
    OPERATIONAL_PROFILE_THRESHOLD: int = 30
    CLASSIFIER_STRATEGY: str = "keyword"  # keyword, external

    # Configuration synthesizer
    MAX_TABLE_SECTIONS: int = 4

    # External model (OpenAI-compatible chat completions)
    GROQ_API_KEY: Optional[str] = None
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_SAMPLE_ROWS: int = 15

    # Uploads
    MAX_UPLOAD_SIZE_MB: int = 100
    ALLOWED_EXTENSIONS: set = {"csv", "xls", "xlsx", "json"}

    # CORS
    CORS_ORIGINS: list = ["http://localhost:3000", "http://localhost:5173"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
