"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (transfer templates only)
    database_url: str = "sqlite:///./transfer_gateway.db"

    # External Services
    account_api_base: str = "http://localhost:8001"
    beneficiary_api_base: str = "http://localhost:8001"
    transfer_api_base: str = "http://localhost:8001"

    # Service
    service_name: str = "transfer-gateway"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 10.0

    # Wizard
    default_transfer_description: str = "Transfer via Wizard"
    authorization_secret_length: int = 4
    max_open_sessions: int = 1000


settings = Settings()
