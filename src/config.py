from typing import List, Optional
from pydantic import PostgresDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "ABFI Backend"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/v1"

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "https://abfi.io",
        "https://www.abfi.io",
    ]

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "abfi"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # overrides the POSTGRES_* settings
    DATABASE_ENABLED: bool = True

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        ))

    # Temporal / covenant monitoring
    EXPIRY_WARNING_DAYS: int = 30
    DASHBOARD_BREACH_WINDOW_DAYS: int = 30
    CI_REPORT_DEFAULT_EXPIRY_DAYS: int = 365

    # Lender notifications
    LENDER_WEBHOOK_URL: Optional[str] = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0
    NOTIFICATION_TIMEZONE: str = "Australia/Sydney"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")

settings = Settings()
