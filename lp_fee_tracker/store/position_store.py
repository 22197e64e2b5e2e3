"""
Position Store - 계산 결과 저장소

계산 코어와 저장 방식을 분리하기 위한 저장소 인터페이스.
JsonPositionStore는 대시보드가 읽는 캐시 파일 형식({"lpPositions": [...]})을 그대로 유지한다.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import PositionStoreError

# 포지션을 덮어써도 유지되는 수동 입력 필드
PRESERVED_FIELDS = ("manualNotes", "customLabel")


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class PositionRecord:
    """저장되는 포지션 1건

    금액 필드는 모두 토큰 최소 단위 정수. JSON에는 문자열로 직렬화된다.
    """
    token_id: str
    owner: str = ""
    pool_id: str = ""
    tick_lower: int = 0
    tick_upper: int = 0
    liquidity: int = 0
    in_range: bool = False
    amount_0: int = 0
    amount_1: int = 0
    price: str = ""  # token0 1개당 token1, Decimal 문자열
    uncollected_0: int = 0
    uncollected_1: int = 0
    claimable_0: int = 0
    claimable_1: int = 0
    clamped: bool = False
    block_number: Optional[int] = None
    updated_at: str = field(default_factory=_utcnow_iso)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "tokenId": self.token_id,
            "owner": self.owner,
            "poolId": self.pool_id,
            "tickLower": self.tick_lower,
            "tickUpper": self.tick_upper,
            "liquidity": str(self.liquidity),
            "inRange": self.in_range,
            "amount0": str(self.amount_0),
            "amount1": str(self.amount_1),
            "price": self.price,
            "uncollected0": str(self.uncollected_0),
            "uncollected1": str(self.uncollected_1),
            "claimable0": str(self.claimable_0),
            "claimable1": str(self.claimable_1),
            "feeSanityClamped": self.clamped,
            "blockNumber": self.block_number,
            "updatedAt": self.updated_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PositionRecord":
        known = {
            "tokenId", "owner", "poolId", "tickLower", "tickUpper", "liquidity", "inRange",
            "amount0", "amount1", "price", "blockNumber",
            "uncollected0", "uncollected1", "claimable0", "claimable1", "feeSanityClamped", "updatedAt",
        }
        return cls(
            token_id=str(data["tokenId"]),
            owner=data.get("owner", ""),
            pool_id=data.get("poolId", ""),
            tick_lower=int(data.get("tickLower", 0)),
            tick_upper=int(data.get("tickUpper", 0)),
            liquidity=int(data.get("liquidity", 0)),
            in_range=bool(data.get("inRange", False)),
            amount_0=int(data.get("amount0", 0)),
            amount_1=int(data.get("amount1", 0)),
            price=str(data.get("price", "")),
            uncollected_0=int(data.get("uncollected0", 0)),
            uncollected_1=int(data.get("uncollected1", 0)),
            claimable_0=int(data.get("claimable0", 0)),
            claimable_1=int(data.get("claimable1", 0)),
            clamped=bool(data.get("feeSanityClamped", False)),
            block_number=int(data["blockNumber"]) if data.get("blockNumber") is not None else None,
            updated_at=data.get("updatedAt") or _utcnow_iso(),
            extra={k: v for k, v in data.items() if k not in known},
        )


def merge_records(existing: Optional[PositionRecord], new: PositionRecord) -> PositionRecord:
    """새 레코드로 덮어쓰되 기존 레코드의 수동 입력 필드는 유지"""
    if existing is None:
        return new
    extra = dict(new.extra)
    for key in PRESERVED_FIELDS:
        if key in existing.extra and key not in extra:
            extra[key] = existing.extra[key]
    return replace(new, extra=extra)


class PositionStore(ABC):
    """포지션 저장소 인터페이스 (token_id 기준 get/put)"""

    @abstractmethod
    def get(self, token_id: str) -> Optional[PositionRecord]:
        ...

    @abstractmethod
    def put_many(self, records: Iterable[PositionRecord]) -> None:
        ...

    @abstractmethod
    def all(self) -> List[PositionRecord]:
        ...

    @abstractmethod
    def delete(self, token_id: str) -> bool:
        ...

    def put(self, record: PositionRecord) -> None:
        self.put_many([record])


class InMemoryPositionStore(PositionStore):
    """테스트 / 단발성 계산용 메모리 저장소"""

    def __init__(self, records: Iterable[PositionRecord] = ()):
        self._records: Dict[str, PositionRecord] = {r.token_id: r for r in records}
        self._lock = threading.Lock()

    def get(self, token_id: str) -> Optional[PositionRecord]:
        return self._records.get(str(token_id))

    def put_many(self, records: Iterable[PositionRecord]) -> None:
        with self._lock:
            for record in records:
                self._records[record.token_id] = merge_records(self._records.get(record.token_id), record)

    def all(self) -> List[PositionRecord]:
        return list(self._records.values())

    def delete(self, token_id: str) -> bool:
        with self._lock:
            return self._records.pop(str(token_id), None) is not None


class JsonPositionStore(PositionStore):
    """JSON 캐시 파일 저장소

    파일 형식:
        {"lastUpdated": "...", "lpPositions": [{"tokenId": "...", ...}], ...}

    lpPositions 외의 최상위 키는 읽은 그대로 보존한다.
    쓰기는 임시 파일에 기록한 뒤 os.replace로 교체한다.
    """

    POSITIONS_KEY = "lpPositions"

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {self.POSITIONS_KEY: []}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PositionStoreError(f"cannot read {self.path}: {e}") from e
        if not isinstance(data, dict) or not isinstance(data.get(self.POSITIONS_KEY, []), list):
            raise PositionStoreError(f"{self.path} is not a position cache file")
        data.setdefault(self.POSITIONS_KEY, [])
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        data["lastUpdated"] = _utcnow_iso()
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".positions-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PositionStoreError(f"cannot write {self.path}: {e}") from e

    def _records(self, data: Dict[str, Any]) -> Dict[str, PositionRecord]:
        records = {}
        for item in data[self.POSITIONS_KEY]:
            if "tokenId" not in item:
                continue
            record = PositionRecord.from_dict(item)
            records[record.token_id] = record
        return records

    def get(self, token_id: str) -> Optional[PositionRecord]:
        return self._records(self._load()).get(str(token_id))

    def put_many(self, records: Iterable[PositionRecord]) -> None:
        with self._lock:
            data = self._load()
            current = self._records(data)
            for record in records:
                current[record.token_id] = merge_records(current.get(record.token_id), record)
            data[self.POSITIONS_KEY] = [r.to_dict() for r in current.values()]
            self._save(data)

    def all(self) -> List[PositionRecord]:
        return list(self._records(self._load()).values())

    def delete(self, token_id: str) -> bool:
        with self._lock:
            data = self._load()
            current = self._records(data)
            if current.pop(str(token_id), None) is None:
                return False
            data[self.POSITIONS_KEY] = [r.to_dict() for r in current.values()]
            self._save(data)
            return True
