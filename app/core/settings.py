"""
Core settings and environment variables for INDRA Incident Hub.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "INDRA Incident Hub"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    REPORTS_COLLECTION: str = "reports"
    USERS_COLLECTION: str = "users"

    # In-memory store for local development without Firebase credentials.
    # MOCK_DB_PATH is optional; when set, the store is snapshotted to JSON.
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: Optional[str] = None

    # Community verification
    VOTE_MAX_RETRIES: int = 5  # Conditional-update attempts before giving up

    # Profile bootstrap (linear backoff: delay * attempt)
    PROFILE_MAX_RETRIES: int = 3
    PROFILE_RETRY_DELAY_MS: int = 500

    # Proximity queries
    MAX_RADIUS_KM: float = 500.0

    # Reverse geocoding for "my city / my state" detection
    # - GEOCODING_PROVIDER: "nominatim" (default, no API key) or "none"
    GEOCODING_PROVIDER: str = "nominatim"
    GEOCODING_USER_AGENT: str = "indra-incident-hub/0.1"
    GEOCODING_TIMEOUT_SECONDS: float = 3.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins_list(self):
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
