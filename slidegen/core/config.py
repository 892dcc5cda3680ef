# slidegen/core/config.py

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """파이프라인 설정을 관리합니다 (.env 로딩)."""

    # LLM Provider Settings
    OPENAI_API_KEY: str = ""
    LLM_TIMEOUT_SEC: int = 120

    # --- Slide generation (text model) ---
    SLIDE_GENERATION_MODEL: str = "gpt-4o"
    SLIDE_GENERATION_TEMPERATURE: float = 0.7
    EXPECTED_SLIDES_COUNT: int = 10

    # --- Image generation ---
    IMAGE_GENERATION_MODEL: str = "gpt-image-1"
    IMAGE_SIZE: str = "1536x1024"
    MAX_IMAGE_RETRIES: int = 3
    INITIAL_IMAGE_RETRY_DELAY_MS: int = 1000
    # None = every valid slide is requested at once
    IMAGE_MAX_CONCURRENCY: Optional[int] = None

    # --- Files ---
    RESEARCH_FILE: str = "research.txt"
    SLIDES_JSON_FILE: str = "slides.json"
    IMAGES_DIR: str = "images"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text or json
    LOG_FILE: Optional[str] = None
    LOG_ROTATE_WHEN: str = "midnight"
    LOG_BACKUP_COUNT: int = 7

    # Metrics
    METRICS_TEXTFILE: Optional[str] = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton settings instance
settings = Settings()
