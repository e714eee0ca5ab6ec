"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env and uploads/ from the repository root regardless of CWD
_ROOT_DIR = Path(__file__).resolve().parents[3]
_ENV_FILE = _ROOT_DIR / ".env"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./solvestay.db"

    # Auth / JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 1440

    # Payments (Razorpay)
    razorpay_key_id: str = ""
    razorpay_key_secret: str = "rzp_test_secret_key"
    payment_currency: str = "INR"
    # Enables the development / "test_signature" acceptance branches
    payment_signature_bypass: bool = False

    # Object storage
    uploads_dir: str = str(_ROOT_DIR / "uploads")
    public_base_url: str = "http://localhost:8000"
    max_image_upload_mb: int = 500
    max_document_upload_mb: int = 5

    # CORS / Frontend
    cors_origins: str = "http://localhost:3000"
    frontend_url: str = "http://localhost:3000"

    # General
    environment: str = "production"
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] to allow any origin (LAN IPs, etc.).
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
