"""Application configuration settings."""
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Voting Portal")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="sqlite+pysqlite:///./voting_portal.db")

    jwt_algorithm: str = Field(default="HS256")
    session_secret: str = Field(default="VOTING_SECRET_KEY_CHANGE_IN_PROD")
    access_token_expire_minutes: int = Field(default=120)
    login_code_ttl_seconds: int = Field(default=300)
    login_code_max_attempts: int = Field(default=5, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    signing_secret: str = Field(default="VOTING_SIGNING_KEY_CHANGE_IN_PROD")
    encryption_secret: str = Field(default="VOTE_ENCRYPTION_MASTER_KEY_32_BYTES!!")
    vote_key_salt_label: str = Field(default="voting-portal-vote-key-salt")

    admin_key: str = Field(default="ADMIN@2025")
    admin_identifier: str = Field(default="admin1")
    admin_email: str = Field(default="admin@university.edu")
    admin_password: str = Field(default="Admin@123")

    code_delivery_backend: Literal["smtp", "http"] = Field(default="smtp")
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_use_starttls: bool = Field(default=True)
    smtp_timeout_seconds: float = Field(default=10.0)
    mail_sender: str | None = Field(default=None)
    mail_subject: str = Field(default="University Voting Portal - Your login code")
    mail_relay_url: str = Field(default="http://localhost:9020/mail/send")
    mail_relay_token: str | None = Field(default=None)
    mail_relay_timeout_seconds: float = Field(default=5.0)

    enable_metrics: bool = Field(default=True)
    enable_audit_log: bool = Field(default=True)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
