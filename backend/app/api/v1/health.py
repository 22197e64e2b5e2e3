"""
Health endpoint

Reports the configured snapshot source and whether the position store is readable.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from lp_fee_tracker.exceptions import PositionStoreError
from lp_fee_tracker.store.position_store import PositionStore

from app.api.schemas import HealthCheckResponse
from app.api.v1.positions import get_store
from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
def health_check(store: PositionStore = Depends(get_store)):
    """Service status; "degraded" when the position store cannot be read"""
    try:
        stored = len(store.all())
        status = "healthy"
    except PositionStoreError as e:
        logger.error("position store unavailable: %s", e)
        stored = None
        status = "degraded"

    return HealthCheckResponse(
        status=status,
        version=settings.API_VERSION,
        snapshot_source=settings.SNAPSHOT_SOURCE,
        stored_positions=stored,
        timestamp=datetime.now(timezone.utc),
    )
