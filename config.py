"""
Configuration module for the DeepSearch Chat application.
Handles environment variables and application settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration class."""

    # API Keys
    SERPER_API_KEY: str = os.getenv("SERPER_API_KEY", "")

    # API Configuration
    SERPER_SEARCH_URL: str = "https://google.serper.dev/search"
    OLLAMA_HOST: str | None = os.getenv("OLLAMA_HOST") or None
    MODEL_NAME: str = os.getenv("MODEL_NAME", "qwen2.5:7b")

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///data/deepsearch.db")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", str(6 * 60 * 60)))

    # Application Settings
    APP_TITLE: str = "DeepSearch Chat"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    MAX_STEPS: int = 10
    MAX_DURATION_SECONDS: float = 60.0
    SEARCH_RESULTS_COUNT: int = 10
    TITLE_MAX_LENGTH: int = 50
    DEFAULT_CHAT_TITLE: str = "New Chat"

    # Timeouts (in seconds)
    SEARCH_TIMEOUT: float = 15.0
    WEB_SCRAPING_TIMEOUT: float = 10.0
    REDIS_TIMEOUT: float = float(os.getenv("REDIS_TIMEOUT", "1.0"))

    # Scraping limits
    MAX_PAGE_CONTENT_LENGTH: int = 8000
    MAX_RESPONSE_SIZE: int = 5 * 1024 * 1024
    MAX_REDIRECTS: int = 5
    MAX_CONCURRENT_SCRAPES: int = 10
    ALLOWED_CONTENT_TYPES = ("text/html", "application/xhtml+xml", "text/plain")
    SCRAPER_USER_AGENT: str = "Mozilla/5.0 (compatible; DeepSearchChat/1.0)"

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and print warnings for missing API keys."""
        if not cls.SERPER_API_KEY:
            print("   WARNING: SERPER_API_KEY not found in .env file")
            print("   The searchWeb tool will report errors. Get an API key from: https://serper.dev/")

        if not os.getenv("API_KEYS"):
            print("   WARNING: API_KEYS not found in .env file")
            print("   All requests will be rejected. Use the format API_KEYS=user_id:key,other_user:key2")

Config.validate()
