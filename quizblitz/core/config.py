"""
Application configuration settings
FILE: quizblitz/core/config.py
"""
from typing import List, Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    app_name: str = "QuizBlitz API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    allowed_origins: List[str] = [
        "http://localhost:5000",
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Storage backend: "memory" keeps everything in-process, "mongo" uses MongoDB
    storage_backend: Literal["memory", "mongo"] = "memory"

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "quizblitz"

    # LLM Configuration
    llm_provider: str = "gemini"
    llm_timeout: float = 60.0
    llm_max_retries: int = 3
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # Game Configuration
    join_code_length: int = 6
    join_code_max_attempts: int = 100
    default_time_per_question: int = 30  # seconds
    default_question_points: int = 1000
    poll_interval_ms: int = 2000
    recent_sessions_limit: int = 10
    leaderboard_limit: int = 20

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "allow"


settings = Settings()
