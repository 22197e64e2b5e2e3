"""
GraphQL 쿼리 정의

Uniswap V3 Subgraph에서 수수료 계산용 스냅샷을 조회하기 위한 쿼리들.
fee growth 필드(global / outside / inside last)는 모두 uint256 문자열로 반환됨.
$block 변수를 생략하면 서브그래프가 인덱싱한 최신 블록 기준.
"""

# Pool 정보 쿼리 (Global State)
POOL_QUERY = """
query Pool($id: ID!, $block: Block_height) {
  pool(id: $id, block: $block) {
    id
    tick
    sqrtPrice
    feeGrowthGlobal0X128
    feeGrowthGlobal1X128
    token0 {
      id
      symbol
      decimals
    }
    token1 {
      id
      symbol
      decimals
    }
  }
}
"""

# 포지션 경계 틱 쿼리 (Tick-Indexed State)
TICKS_BY_IDX_QUERY = """
query Ticks($pool: String!, $tickIdxs: [BigInt!]!, $block: Block_height) {
  ticks(where: { pool: $pool, tickIdx_in: $tickIdxs }, block: $block) {
    tickIdx
    liquidityGross
    liquidityNet
    feeGrowthOutside0X128
    feeGrowthOutside1X128
  }
}
"""

_POSITION_FIELDS = """
    id
    owner
    liquidity
    pool {
      id
    }
    tickLower {
      tickIdx
    }
    tickUpper {
      tickIdx
    }
    feeGrowthInside0LastX128
    feeGrowthInside1LastX128
"""

# NFT 포지션 단건 쿼리 (Position-Indexed State)
POSITION_QUERY = """
query Position($id: ID!, $block: Block_height) {
  position(id: $id, block: $block) {%s  }
}
""" % _POSITION_FIELDS

# 소유자별 포지션 목록 (페이지네이션)
POSITIONS_BY_OWNER_QUERY = """
query PositionsByOwner($owner: Bytes!, $skip: Int!, $first: Int!) {
  positions(
    where: { owner: $owner }
    orderBy: id
    orderDirection: asc
    skip: $skip
    first: $first
  ) {%s  }
}
""" % _POSITION_FIELDS

# 서브그래프가 인덱싱한 최신 블록
META_QUERY = """
query Meta {
  _meta {
    block {
      number
    }
  }
}
"""
