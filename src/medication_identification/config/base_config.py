# ============================================================================
# src/medication_identification/config/base_config.py
# ============================================================================
"""
Base Configuration
- Session/extraction database
- API server binding
"""

from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class BaseSettingsConfig(BaseSettings):
    SESSION_DB_PATH: Path = Field(
        default=Path("data/medication_sessions.db"),
        description="SQLite database for scan sessions and extraction records"
    )
    API_HOST: str = Field(
        default="0.0.0.0",
        description="Bind address for the HTTP API"
    )
    API_PORT: int = Field(
        default=8000,
        ge=1, le=65535,
        description="Port for the HTTP API"
    )
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:8081"],
        description="Origins allowed to call the HTTP API from a browser or app"
    )

base_settings = BaseSettingsConfig()
