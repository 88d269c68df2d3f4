import os
from pydantic_settings import BaseSettings
from pathlib import Path

class Settings(BaseSettings):
    # Project Paths
    BASE_DIR: Path = Path(__file__).parent.parent
    DATA_DIR: Path = BASE_DIR / "data"

    # Journal rules
    MILESTONE_INTERVAL: int = 10
    MAX_CONTENT_LENGTH: int = 10000
    MAX_CUSTOM_INSTRUCTION_LENGTH: int = 500
    MAX_PERIODIC_ENTRIES: int = 100
    UNKNOWN_MOOD: str = "unknown"
    DEFAULT_DISPLAY_NAME: str = "user"

    # LLM Settings
    LLM_PROVIDER: str = "gemini"  # gemini | ollama
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_URL: str = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
    OLLAMA_URL: str = "http://localhost:11434/api/generate"
    OLLAMA_MODEL: str = "llama3.1"
    MAX_TOKENS: int = 1024
    TEMPERATURE: float = 0.7
    REQUEST_TIMEOUT: float = 60.0

    # Database
    DATABASE_URL: str = f"sqlite:///{DATA_DIR}/daiary.db"

    # Auth (tokens are issued by the hosted auth provider)
    AUTH_JWT_SECRET: str = "change-this-please"
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # Server
    CORS_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True

    class Config:
        env_file = ".env"

settings = Settings()

# Ensure data directory exists
os.makedirs(settings.DATA_DIR, exist_ok=True)
