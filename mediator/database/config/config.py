"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields raise a validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from mediator.database.config.config import settings

# Example
db_host = settings.DB_HOST
openai_model = settings.OPEN_AI_MODEL

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production (K8s/Secrets Manager/etc.).
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    FRONTEND_URL: str = Field(..., description="Base URL of the frontend client application (CORS origin).")
    INIT_MODE: str = Field("runtime", description="Initialization mode. 'runtime' creates missing tables at startup.")
    LOG_LEVEL: str = Field("INFO", description="Root log level (DEBUG, INFO, WARNING, ...).")

    DB_DRIVER_NAME: str = Field(..., description="Database driver (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_DATABASE_NAME: str = Field(..., description="Name of the database, or the file path for SQLite.")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Port of the database server.")

    SECRET_KEY: str = Field(..., description="Secret key for signing access tokens.")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm.")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, description="Duration (in minutes) before access tokens expire.")

    API_KEY: str = Field(..., description="OpenAI API key used by the LLM gateway.")
    OPEN_AI_MODEL: str = Field("gpt-4", description="OpenAI chat model name.")
    LLM_MAX_ATTEMPTS: int = Field(3, description="Total attempts per completion when the provider answers 429.")
    LLM_BASE_DELAY_SECONDS: float = Field(1.0, description="First backoff delay; doubles on every retry.")
    RECENT_MESSAGE_WINDOW: int = Field(50, description="How many recent chat messages are sent to the LLM.")

    RATE_LIMIT_CALLS: int = Field(10, description="Assist calls allowed per user inside the window.")
    RATE_LIMIT_WINDOW_SECONDS: float = Field(60.0, description="Sliding window length in seconds.")

    AWS_ACCESS_KEY: Optional[str] = Field(None, description="AWS access key ID.")
    AWS_SECRET_KEY: Optional[str] = Field(None, description="AWS secret access key.")
    REGION: str = Field("eu-central-1", description="AWS region name.")
    BUCKET_NAME: str = Field("case-files", description="S3 bucket holding case file uploads.")
    PRESIGNED_URL_EXPIRES: int = Field(3600, description="Lifetime of presigned download URLs in seconds.")


settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
