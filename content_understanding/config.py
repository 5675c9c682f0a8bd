from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_VERSION = "2024-12-01-preview"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # Content Understanding service
    CONTENT_UNDERSTANDING_ENDPOINT: str = ""
    CONTENT_UNDERSTANDING_API_KEY: str | None = None
    CONTENT_UNDERSTANDING_API_VERSION: str = DEFAULT_API_VERSION

    # 轮询间隔（秒）；单次调用可覆盖
    POLLING_INTERVAL_SEC: float = 2.0
    REQUEST_TIMEOUT_SEC: float = 120.0

    # Redis（job 状态存储）
    REDIS_HOST: str = "redis"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str | None = None
    REDIS_REQUIRED: bool = False
    REDIS_KEY_PREFIX: str = "cu:service"

    IDEMPOTENCY_TTL_SEC: int = 3600  # 1h
    JOB_TTL_SEC: int = 86400  # 24h

    # Logging
    LOG_DIR: str = "./data/logs"
    LOG_LEVEL: str = "INFO"
    LOG_RETENTION_DAYS: int = 10

    # Analyzer manifest
    ANALYZER_CONFIG_FILE: str = "./analyzers.yaml"
    SYNC_ANALYZERS_ON_STARTUP: bool = False


settings = Settings()
