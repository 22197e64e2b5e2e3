"""
컨트랙트 ABI (수수료 계산에 필요한 view 함수만)
"""

UNISWAP_V3_POOL_ABI = [
    {
        "name": "slot0", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [
            {"name": "sqrtPriceX96", "type": "uint160"},
            {"name": "tick", "type": "int24"},
            {"name": "observationIndex", "type": "uint16"},
            {"name": "observationCardinality", "type": "uint16"},
            {"name": "observationCardinalityNext", "type": "uint16"},
            {"name": "feeProtocol", "type": "uint8"},
            {"name": "unlocked", "type": "bool"},
        ],
    },
    {
        "name": "feeGrowthGlobal0X128", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "feeGrowthGlobal1X128", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "ticks", "type": "function", "stateMutability": "view",
        "inputs": [{"name": "tick", "type": "int24"}],
        "outputs": [
            {"name": "liquidityGross", "type": "uint128"},
            {"name": "liquidityNet", "type": "int128"},
            {"name": "feeGrowthOutside0X128", "type": "uint256"},
            {"name": "feeGrowthOutside1X128", "type": "uint256"},
            {"name": "tickCumulativeOutside", "type": "int56"},
            {"name": "secondsPerLiquidityOutsideX128", "type": "uint160"},
            {"name": "secondsOutside", "type": "uint32"},
            {"name": "initialized", "type": "bool"},
        ],
    },
    {
        "name": "token0", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "token1", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "name": "fee", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "uint24"}],
    },
]

POSITION_MANAGER_ABI = [
    {
        "name": "positions", "type": "function", "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [
            {"name": "nonce", "type": "uint96"},
            {"name": "operator", "type": "address"},
            {"name": "token0", "type": "address"},
            {"name": "token1", "type": "address"},
            {"name": "fee", "type": "uint24"},
            {"name": "tickLower", "type": "int24"},
            {"name": "tickUpper", "type": "int24"},
            {"name": "liquidity", "type": "uint128"},
            {"name": "feeGrowthInside0LastX128", "type": "uint256"},
            {"name": "feeGrowthInside1LastX128", "type": "uint256"},
            {"name": "tokensOwed0", "type": "uint128"},
            {"name": "tokensOwed1", "type": "uint128"},
        ],
    },
    {
        "name": "ownerOf", "type": "function", "stateMutability": "view",
        "inputs": [{"name": "tokenId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "address"}],
    },
]

UNISWAP_V3_FACTORY_ABI = [
    {
        "name": "getPool", "type": "function", "stateMutability": "view",
        "inputs": [
            {"name": "tokenA", "type": "address"},
            {"name": "tokenB", "type": "address"},
            {"name": "fee", "type": "uint24"},
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
]

ERC20_ABI = [
    {
        "name": "decimals", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "name": "symbol", "type": "function", "stateMutability": "view", "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]
