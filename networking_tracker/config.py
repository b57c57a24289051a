"""
Application configuration management.

Loads settings from environment variables with sensible defaults.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from package directory
_PACKAGE_DIR = Path(__file__).parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Try loading .env from multiple locations
for env_path in [_PACKAGE_DIR / ".env", _PROJECT_ROOT / ".env"]:
    if env_path.exists():
        load_dotenv(env_path)
        break


class Config:
    """Application configuration loaded from environment variables."""

    # ========================================
    # Paths
    # ========================================
    BASE_DIR: Path = _PACKAGE_DIR
    PROJECT_ROOT: Path = _PROJECT_ROOT

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        f"sqlite:///{_PROJECT_ROOT / 'networking_tracker.db'}"
    )
    SQL_ECHO: bool = os.getenv("SQL_ECHO", "false").lower() == "true"

    # ========================================
    # Logging
    # ========================================
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()

    # ========================================
    # Email Settings
    # ========================================
    # Name used in place of {{sender_name}} when rendering templates
    SENDER_NAME: str = os.getenv("SENDER_NAME", "[Your Name]")

    # ========================================
    # Listing
    # ========================================
    DEFAULT_LIST_LIMIT: int = int(os.getenv("DEFAULT_LIST_LIMIT", "100"))

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not isinstance(logging.getLevelName(cls.LOG_LEVEL), int):
            errors.append(f"LOG_LEVEL '{cls.LOG_LEVEL}' is not a valid logging level")

        if cls.DEFAULT_LIST_LIMIT <= 0:
            errors.append("DEFAULT_LIST_LIMIT must be positive")

        if not cls.DATABASE_URL:
            errors.append("DATABASE_URL is not set")

        return errors


# Create singleton instance
config = Config()
