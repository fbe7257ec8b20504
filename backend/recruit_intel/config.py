from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/recruit.db"
    # Read-only JSON snapshot used to hydrate the store at startup
    snapshot_path: str = ".local/storage-data.json"

    # Canvas LMS configuration
    canvas_base_url: str = "https://canvas.instructure.com"
    canvas_api_key: str = ""
    student_page_limit: int = 50
    submission_page_limit: int = 10

    # AI analysis configuration
    openai_api_key: str = ""
    ai_model: str = "gpt-4o-mini"
    ai_max_tokens: int = 2048
    ai_temperature: float = 0.2
    ai_min_call_interval: float = 1.0  # seconds between call starts
    max_content_chars: int = 50000

    # Batch queue settings
    batch_size: int = 3
    batch_delay_seconds: float = 5.0

    # Periodic course sync, 0 disables the scheduler
    sync_interval_hours: int = 0

    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
