# crop_health/config.py
import os
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


class Settings(BaseSettings):
    """Application configuration based on environment variables"""

    # API configuration
    API_PREFIX: str = "/api"

    # CORS configuration (Frontend URLs)
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # React dev server
        "http://localhost:5000",
        "http://localhost:8080",
    ]

    # Debug mode
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = "INFO"

    # Maximum file size for uploads (in bytes)
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10 MB

    # Longest image side that is scanned without downscaling
    MAX_SCAN_DIMENSION: int = 1024

    # Colour percentages that trigger each health category
    BLACK_SPOT_THRESHOLD: float = 5.0
    LEAF_BLIGHT_THRESHOLD: float = 15.0
    NUTRIENT_DEFICIENCY_THRESHOLD: float = 20.0
    PLANT_STRESS_THRESHOLD: float = 30.0

    # Language of recommendation texts ("hi" or "en")
    GUIDANCE_LOCALE: str = "hi"

    # Optional remote classifiers, skipped when no key is configured
    PLANTNET_API_KEY: Optional[str] = None
    PLANTNET_URL: str = "https://my-api.plantnet.org/v2/identify/all"
    PLANTNET_MIN_CONFIDENCE: int = 70

    GOOGLE_VISION_API_KEY: Optional[str] = None
    GOOGLE_VISION_URL: str = "https://vision.googleapis.com/v1/images:annotate"
    GOOGLE_VISION_MIN_CONFIDENCE: int = 60

    # Upper bound for a single remote classifier attempt
    CLASSIFIER_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Return settings with caching"""
    return Settings()
