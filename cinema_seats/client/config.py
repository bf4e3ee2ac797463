"""
Seat view client configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SEATMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    API_URL: str = "http://localhost:8000"
    API_PREFIX: str = "/api/v1"
    TIMEOUT_SECONDS: float = 10.0
    PULSE_SECONDS: float = 1.0
