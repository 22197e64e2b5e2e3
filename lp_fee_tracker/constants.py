"""
LP Fee Tracker 상수 정의

- Q128: fee growth 인코딩에 사용 (2^128)
- UINT256_MOD: fee growth 누적값의 랩어라운드 모듈러스 (2^256)
- MAX_REASONABLE_DELTA: 비정상적인 랩어라운드를 걸러내는 sanity ceiling
- 프로토콜 데이 기준 시각 및 기본 컨트랙트 주소
"""

from datetime import datetime, timezone
from typing import Dict, List

# Fixed-point 인코딩 상수
Q96: int = 2 ** 96
Q128: int = 2 ** 128

# uint256 / uint128 범위
UINT256_MOD: int = 2 ** 256
UINT256_MAX: int = UINT256_MOD - 1
UINT128_MOD: int = 2 ** 128
UINT128_MAX: int = UINT128_MOD - 1

# fee growth delta가 이 값 이상이면 실제 수수료가 아니라
# 동기화 중인 데이터 소스에서 발생한 가짜 랩어라운드로 간주
MAX_REASONABLE_DELTA_BITS: int = 200
MAX_REASONABLE_DELTA: int = 2 ** MAX_REASONABLE_DELTA_BITS

# 틱 범위 상수
MIN_TICK: int = -887272
MAX_TICK: int = 887272

# 프로토콜 데이 1은 이 시각(UTC 18:00)에 시작
CONTRACT_START_DATE: datetime = datetime(2025, 7, 10, 18, 0, 0, tzinfo=timezone.utc)
SECONDS_PER_DAY: int = 24 * 60 * 60

# Ethereum mainnet 기본 주소
NONFUNGIBLE_POSITION_MANAGER: str = "0xC36442b4a4522E871399CD717aBDD847Ab11FE88"
UNISWAP_V3_FACTORY: str = "0x1F98431c8aD98523631AE4a59f267346ea31F984"

# 공개 RPC 엔드포인트 (순서대로 fallback)
DEFAULT_RPC_URLS: List[str] = [
    "https://ethereum.publicnode.com",
    "https://eth.llamarpc.com",
    "https://rpc.ankr.com/eth",
    "https://cloudflare-eth.com",
]

# 지원되는 체인 이름 → The Graph Subgraph ID
SUBGRAPH_IDS: Dict[str, str] = {
    "ethereum": "5zvR82QoaXYFyDEKLZ9t6v9adgnptxYpKpSbxtgVENFV",
    "optimism": "Cghf4LfVqPiFw6fp6Y5X5Ubc8UpmUhSfJL82zwiBFLaj",
    "arbitrum": "FbCGRftH4a3yZugY7TnbYgPJVEv2LvMT6oF1fxPe9aJM",
    "polygon": "3hCPRGf4z88VC5rsBKU5AA9FBBq5nF3jbKJG7VZCbhjm",
    "celo": "ESdrTJ3twMwWVoQ1hUE2u7PugEHX3QkenudD6aXCkDQ4",
}
