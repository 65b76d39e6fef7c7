"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))


def _split_list(value: str | None) -> list[str]:
    """Split a comma separated env value into stripped, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    """Application configuration."""

    # Provider
    ARCHIVE_ENDPOINT: str = os.getenv(
        "ARCHIVE_ENDPOINT", "https://global.bing.com/HPImageArchive.aspx"
    )
    IMAGE_ENDPOINT: str = os.getenv("IMAGE_ENDPOINT", "https://www.bing.com/")
    MARKETS: list[str] = _split_list(os.getenv("MARKETS"))
    BATCH_TIMEZONE: str = os.getenv("BATCH_TIMEZONE", "America/Los_Angeles")

    # HTTP
    TIMEOUT: int = int(os.getenv("TIMEOUT", "20"))
    MAX_ATTEMPTS: int = int(os.getenv("MAX_ATTEMPTS", "3"))
    RETRY_WAIT_MAX: float = float(os.getenv("RETRY_WAIT_MAX", "10"))
    CONCURRENCY: int = int(os.getenv("CONCURRENCY", "10"))

    # Local storage
    DEST_DIR: str = os.getenv("DEST_DIR", str(DATA_DIR / "images"))

    # Supabase
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_SERVICE_ROLE: str | None = os.getenv("SUPABASE_SERVICE_ROLE")
    SUPABASE_ARCHIVE_TABLE: str = os.getenv("SUPABASE_ARCHIVE_TABLE", "archives")
    SUPABASE_IMAGE_TABLE: str = os.getenv("SUPABASE_IMAGE_TABLE", "images")
    SUPABASE_BUCKET: str | None = os.getenv("SUPABASE_BUCKET")
    SUPABASE_FOLDER: str = os.getenv("SUPABASE_FOLDER", "")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls, require_supabase: bool = True, require_storage: bool = False) -> None:
        """Validate required configuration."""
        errors = []
        if require_supabase:
            if not cls.SUPABASE_URL:
                errors.append("SUPABASE_URL is required")
            if not cls.SUPABASE_SERVICE_ROLE:
                errors.append("SUPABASE_SERVICE_ROLE is required")
        if require_storage and not cls.DEST_DIR and not cls.SUPABASE_BUCKET:
            errors.append("Either DEST_DIR or SUPABASE_BUCKET is required")
        if cls.TIMEOUT <= 0:
            errors.append("TIMEOUT must be positive")
        if cls.MAX_ATTEMPTS < 1:
            errors.append("MAX_ATTEMPTS must be at least 1")
        if cls.CONCURRENCY < 1:
            errors.append("CONCURRENCY must be at least 1")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
