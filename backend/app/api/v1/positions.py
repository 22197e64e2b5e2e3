"""
Position Endpoints

Stored positions are read from the configured position store. The /fees
endpoint fetches fresh snapshots and runs the fee calculation live.
"""
import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from lp_fee_tracker.data.factory import build_source
from lp_fee_tracker.exceptions import PositionNotFoundError, SnapshotSourceError, ValidationError
from lp_fee_tracker.math.fee_math import format_token_amount
from lp_fee_tracker.store.position_store import JsonPositionStore, PositionRecord, PositionStore
from lp_fee_tracker.tracker import FeeTracker

from app.api.schemas import (
    ErrorResponse,
    PositionFeesResponse,
    PositionListResponse,
    PositionResponse,
)
from app.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_store() -> PositionStore:
    return JsonPositionStore(settings.POSITION_STORE_PATH)


@lru_cache(maxsize=1)
def get_tracker() -> FeeTracker:
    return FeeTracker(
        build_source(settings),
        max_workers=settings.MAX_WORKERS,
        sanity_ceiling=settings.sanity_ceiling,
    )


def _to_response(record: PositionRecord) -> PositionResponse:
    return PositionResponse(
        token_id=record.token_id,
        owner=record.owner,
        pool_id=record.pool_id,
        tick_lower=record.tick_lower,
        tick_upper=record.tick_upper,
        liquidity=str(record.liquidity),
        in_range=record.in_range,
        amount_0=str(record.amount_0),
        amount_1=str(record.amount_1),
        price=record.price,
        uncollected_0=str(record.uncollected_0),
        uncollected_1=str(record.uncollected_1),
        claimable_0=str(record.claimable_0),
        claimable_1=str(record.claimable_1),
        fee_sanity_clamped=record.clamped,
        block_number=record.block_number,
        updated_at=record.updated_at,
    )


@router.get("/positions", response_model=PositionListResponse)
def list_positions(store: PositionStore = Depends(get_store)):
    """
    List stored positions

    Returns every position in the store with its last computed fees.
    """
    records = sorted(store.all(), key=lambda r: int(r.token_id) if r.token_id.isdigit() else r.token_id)
    return PositionListResponse(count=len(records), positions=[_to_response(r) for r in records])


@router.get(
    "/positions/{token_id}",
    response_model=PositionResponse,
    responses={404: {"model": ErrorResponse}},
)
def get_position(token_id: str, store: PositionStore = Depends(get_store)):
    """Stored position by token ID"""
    record = store.get(token_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"position not found: {token_id}")
    return _to_response(record)


@router.get(
    "/positions/{token_id}/fees",
    response_model=PositionFeesResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
def get_position_fees(token_id: str, tracker: FeeTracker = Depends(get_tracker)):
    """
    Live uncollected fees

    Fetches pool, tick and position snapshots and computes uncollected fees.
    Non-numeric token IDs and invalid position data are reported as 422,
    upstream failures as 502.
    """
    try:
        fees = tracker.compute(token_id)
    except PositionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SnapshotSourceError as e:
        logger.error("snapshot fetch failed for %s: %s", token_id, e)
        raise HTTPException(status_code=502, detail=str(e))

    decimals0, decimals1 = fees.decimals()
    result = fees.result
    return PositionFeesResponse(
        token_id=fees.token_id,
        pool_id=fees.position.pool_id,
        range_status=result.range_status.value,
        current_tick=fees.pool.tick,
        price=format(fees.price, "f"),
        block_number=fees.block_number,
        amount_0=str(fees.amount_0),
        amount_1=str(fees.amount_1),
        fee_growth_inside_0=str(result.fee_growth_inside_0),
        fee_growth_inside_1=str(result.fee_growth_inside_1),
        uncollected_0=str(result.uncollected_fees_0),
        uncollected_1=str(result.uncollected_fees_1),
        tokens_owed_0=str(fees.position.tokens_owed_0),
        tokens_owed_1=str(fees.position.tokens_owed_1),
        claimable_0=str(fees.claimable_0),
        claimable_1=str(fees.claimable_1),
        clamped_0=result.clamped_0,
        clamped_1=result.clamped_1,
        decimals_0=decimals0,
        decimals_1=decimals1,
        display={
            "amount_0": str(format_token_amount(fees.amount_0, decimals0)),
            "amount_1": str(format_token_amount(fees.amount_1, decimals1)),
            "claimable_0": str(format_token_amount(fees.claimable_0, decimals0)),
            "claimable_1": str(format_token_amount(fees.claimable_1, decimals1)),
        },
    )
