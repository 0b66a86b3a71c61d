"""Application configuration."""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "hiring_manager"
    mongodb_transactions: bool = False  # requires a replica set

    # JWT
    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440
    verify_code_ttl_minutes: int = 60

    # Application
    app_name: str = "Hiring Manager API"
    app_version: str = "1.0.0"
    debug: bool = True
    log_level: str = "INFO"

    # CORS
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Hiring rules
    mandatory_stage_names: str = "Application,Screening"
    referral_token_ttl_days: int = 7
    activity_log_retention_seconds: int = 31536000

    # AI
    openai_api_key: str = ""
    resume_match_model: str = "gpt-4o-mini"
    resume_match_temperature: float = 0.7

    # Email
    email_webhook_url: str = ""
    email_sender: str = "no-reply@localhost"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get allowed origins as a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def mandatory_stage_names_list(self) -> List[str]:
        """Names of pipeline stages that can never be removed or skipped."""
        return [name.strip() for name in self.mandatory_stage_names.split(",") if name.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
