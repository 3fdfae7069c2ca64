from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    environment: str = "development"
    log_level: str = "INFO"
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000
    app_version: str = "0.1.0"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Anthropic
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-20250514"
    claude_ocr_model: str = "claude-sonnet-4-20250514"
    claude_max_tokens: int = 4096
    claude_temperature: float = 0.1

    # Uploads
    max_upload_size_mb: int = 50
    allowed_mime_types: set[str] = {
        "application/pdf",
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
    }

    # Processing
    processing_timeout_seconds: float = 300.0
    min_document_chars: int = 10
    scanned_page_threshold: int = 50

    # Rate limiting (per client, resetting window)
    rate_limit_requests: int = 10
    rate_limit_window_seconds: int = 3600

    # Document
    carrier_name: str = "SHIPPING COMPANY"

    # Sentry (optional)
    sentry_dsn: str = ""


settings = Settings()
