"""
Configuration settings for LP Fee Tracker

Loads environment variables (.env supported) and provides runtime configuration.
"""
import os
from typing import List

from dotenv import load_dotenv

from .constants import (
    DEFAULT_RPC_URLS,
    NONFUNGIBLE_POSITION_MANAGER,
    MAX_REASONABLE_DELTA_BITS,
)

# Load environment variables from .env file
load_dotenv()


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings"""

    # Snapshot sources
    SNAPSHOT_SOURCE: str = os.getenv("SNAPSHOT_SOURCE", "rpc")
    RPC_URLS: List[str] = _split(os.getenv("RPC_URLS", "")) or list(DEFAULT_RPC_URLS)
    RPC_TIMEOUT: int = int(os.getenv("RPC_TIMEOUT", 10))
    RPC_MAX_RETRIES: int = int(os.getenv("RPC_MAX_RETRIES", 2))
    GRAPH_API_KEY: str = os.getenv("GRAPH_API_KEY", "")
    CHAIN: str = os.getenv("CHAIN", "ethereum")

    # Contracts
    # 비어 있으면 포지션마다 factory.getPool로 풀을 찾는다
    POOL_ADDRESS: str = os.getenv("POOL_ADDRESS", "")
    POSITION_MANAGER_ADDRESS: str = os.getenv("POSITION_MANAGER_ADDRESS", NONFUNGIBLE_POSITION_MANAGER)

    # Storage
    POSITION_STORE_PATH: str = os.getenv("POSITION_STORE_PATH", "public/data/cached-data.json")

    # Fee calculation
    FEE_SANITY_CEILING_BITS: int = int(os.getenv("FEE_SANITY_CEILING_BITS", MAX_REASONABLE_DELTA_BITS))
    MAX_WORKERS: int = int(os.getenv("MAX_WORKERS", 4))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def sanity_ceiling(self) -> int:
        return 2 ** self.FEE_SANITY_CEILING_BITS


# Create global settings instance
settings = Settings()
