"""
예외 계층

계산 코어의 입력 검증 오류와 스냅샷 조회(I/O) 오류를 구분합니다.
검증 오류는 ValueError도 상속하므로 기존 `except ValueError` 코드와 호환됩니다.
"""


class FeeTrackerError(Exception):
    """LP Fee Tracker 기본 예외"""
    pass


class ValidationError(FeeTrackerError, ValueError):
    """잘못된 입력값"""
    pass


class InvalidTickRangeError(ValidationError):
    """tick_lower >= tick_upper 또는 허용 범위를 벗어난 틱"""

    def __init__(self, tick_lower: int, tick_upper: int, reason: str = ""):
        self.tick_lower = tick_lower
        self.tick_upper = tick_upper
        message = reason or f"tick_lower({tick_lower}) must be less than tick_upper({tick_upper})"
        super().__init__(message)


class NegativeLiquidityError(ValidationError):
    """음수 유동성"""

    def __init__(self, liquidity: int):
        self.liquidity = liquidity
        super().__init__(f"liquidity must be non-negative, got {liquidity}")


class InvalidUint256Error(ValidationError):
    """uint256/uint128 범위를 벗어나거나 파싱할 수 없는 값"""
    pass


class SnapshotSourceError(FeeTrackerError):
    """스냅샷 조회 실패 (네트워크/데이터 소스)"""
    pass


class GraphClientError(SnapshotSourceError):
    """Graph API 오류"""
    pass


class RpcClientError(SnapshotSourceError):
    """JSON-RPC 노드 오류"""
    pass


class PositionNotFoundError(FeeTrackerError):
    """존재하지 않는 포지션"""

    def __init__(self, token_id: str):
        self.token_id = token_id
        super().__init__(f"position not found: {token_id}")


class PositionStoreError(FeeTrackerError):
    """포지션 저장소 읽기/쓰기 실패"""
    pass


class InvalidTokenIdError(ValidationError):
    """10진수 uint256이 아닌 포지션 token ID"""

    def __init__(self, token_id):
        self.token_id = token_id
        super().__init__(f"invalid position token id: {token_id!r}")


class PoolMismatchError(ValidationError):
    """포지션이 설정된 고정 풀에 속하지 않음"""

    def __init__(self, token_id: str, pool_id: str):
        self.token_id = token_id
        self.pool_id = pool_id
        super().__init__(f"position {token_id} does not belong to configured pool {pool_id}")
