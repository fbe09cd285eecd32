from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings

FALLBACK_JWT_SECRET = "fallback-secret-key-change-this"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field("Aplikasi Penilaian Guru", alias="APP_NAME")
    app_version: str = Field("1.0.0", alias="APP_VERSION")

    database_url: str = Field("sqlite+aiosqlite:///./school_grades.db", alias="DATABASE_URL")
    # Create tables and seed default classes/subjects on startup
    auto_create_schema: bool = Field(True, alias="AUTO_CREATE_SCHEMA")

    jwt_secret_key: str = Field(FALLBACK_JWT_SECRET, alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Guard for the destructive admin endpoints
    admin_delete_password: str = Field("DELETE_ALL_ACCOUNTS_2025", alias="ADMIN_DELETE_PASSWORD")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    # Comma separated, e.g. "http://localhost:3000,https://guru.example.com"
    cors_origins: str = Field("*", alias="CORS_ORIGINS")

    @property
    def cors_origin_list(self) -> List[str]:
        return [s.strip() for s in self.cors_origins.split(",") if s.strip()]

    @property
    def uses_fallback_secret(self) -> bool:
        return self.jwt_secret_key == FALLBACK_JWT_SECRET

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
