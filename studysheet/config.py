from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional

# Get the project root directory (parent of studysheet folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = f"sqlite:///{PROJECT_ROOT / 'studysheet.db'}"
    log_level: str = "INFO"
    
    # Review scheduling
    max_schedule_retries: int = 3  # conditional-write retries on conflict
    attempt_timeout_seconds: Optional[float] = None
    max_interval_days: Optional[int] = None  # None = uncapped growth
    
    # Display
    due_queue_limit: int = 50
    
    class Config:
        env_file = str(PROJECT_ROOT / ".env")

settings = Settings()
