from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    # MongoDB Configuration
    mongo_url: str
    db_name: str

    # Application Configuration
    app_version: str = "1.0.0"
    frontend_url: str = "http://localhost:3000"
    environment: str = "development"
    log_level: Optional[str] = None

    # JWT Configuration (tokens are issued by the identity service)
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"

    # Cookie lifetimes
    access_token_max_age_seconds: int = 24 * 60 * 60  # 24 hours
    refresh_token_max_age_seconds: int = 7 * 24 * 60 * 60  # 7 days

    # Placeholder oil volume used for estimated_hours_remaining until a real
    # oil-level input exists
    assumed_remaining_oil_volume: float = 5.0

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def get_log_level(self) -> str:
        """Explicit LOG_LEVEL wins, otherwise DEBUG outside production"""
        if self.log_level:
            return self.log_level.upper()
        return "INFO" if self.is_production else "DEBUG"

    class Config:
        env_file = ".env"
        case_sensitive = False

@lru_cache()
def get_settings():
    return Settings()
