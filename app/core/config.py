from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    - extra="ignore" keeps unrelated variables in .env (front end, docker)
      from failing startup
    - retry/backoff values are plain settings so tests and slow Spaces can tune them
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Upstream Gradio Space
    gradio_space: str = Field(default="NagarajDev/dlwat", alias="GRADIO_SPACE")
    gradio_api_name: str = Field(default="/predict", alias="GRADIO_API_NAME")
    hf_token: str | None = Field(default=None, alias="HF_TOKEN")

    # Poll loop
    predict_max_attempts: int = Field(default=12, alias="PREDICT_MAX_ATTEMPTS")
    predict_retry_delay_ms: int = Field(default=2000, alias="PREDICT_RETRY_DELAY_MS")
    # per attempt: time allowed in the upstream queue, then time allowed for processing
    upstream_queue_timeout_seconds: float = Field(default=2.0, alias="UPSTREAM_QUEUE_TIMEOUT_SECONDS")
    upstream_processing_timeout_seconds: float = Field(default=120.0, alias="UPSTREAM_PROCESSING_TIMEOUT_SECONDS")

    # Paths
    uploads_dir: str | None = Field(default=None, alias="UPLOADS_DIR")

    # Presentation
    preview_limit: int = Field(default=20, alias="PREVIEW_LIMIT")

    # HTTP
    cors_origins: list[str] = Field(default=["http://localhost:3000"], alias="CORS_ORIGINS")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def predict_retry_delay_seconds(self) -> float:
        return self.predict_retry_delay_ms / 1000.0


settings = Settings()
