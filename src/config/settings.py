"""
Configuration settings for the User Management API
"""

import os
import logging
from pathlib import Path

# Configure logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Environment configuration
ENV = os.getenv("ENV", "production").lower()  # development or production
HOST = os.getenv("HOST", "0.0.0.0")
DATA_FILE = Path(os.getenv("DATA_FILE", str(PROJECT_ROOT / "data" / "users.json")))

try:
    PORT = int(os.getenv("PORT", 3000))
except ValueError:
    raise ValueError(f"PORT must be an integer, got {os.getenv('PORT')!r}")

if ENV not in ("development", "production"):
    logger.warning(f"Unknown ENV '{ENV}' - treating as production")


def is_development() -> bool:
    """Whether diagnostic detail may be exposed in error responses"""
    return ENV == "development"


# CORS settings
ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

logger.info(f"Environment: {ENV}")
logger.info(f"Data file: {DATA_FILE}")
