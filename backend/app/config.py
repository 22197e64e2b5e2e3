"""
Configuration settings for the LP fee API

Loads environment variables and provides application configuration.
Snapshot source and store settings are shared with the lp_fee_tracker package.
"""
import os
from typing import List

from dotenv import load_dotenv

from lp_fee_tracker.config import Settings as TrackerSettings

# Load environment variables from .env file
load_dotenv()


class Settings(TrackerSettings):
    """Application settings"""

    # API Configuration
    API_VERSION: str = "1.0.0"
    API_TITLE: str = "Uniswap V3 LP Fee API"
    API_DESCRIPTION: str = "Uncollected fee accounting for Uniswap V3 liquidity positions"

    # CORS Configuration
    CORS_ORIGINS: List[str] = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000"
    ).split(",")

    # Server Configuration
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8000))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"


# Create global settings instance
settings = Settings()
