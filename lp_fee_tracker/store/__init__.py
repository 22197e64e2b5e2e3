from .position_store import (
    PositionRecord,
    PositionStore,
    InMemoryPositionStore,
    JsonPositionStore,
    merge_records,
)
