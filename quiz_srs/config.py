from pydantic_settings import BaseSettings
from pathlib import Path

# Get the project root directory (parent of quiz_srs folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = "sqlite:///./quiz_srs.db"
    database_echo: bool = False
    
    # Logging
    log_level: str = "INFO"
    log_json: bool = True  # False renders human-readable console output
    
    # Quiz session
    daily_goal: int = 20  # reviews per day shown in daily progress
    
    class Config:
        env_file = str(PROJECT_ROOT / ".env")
        extra = "ignore"

settings = Settings()
