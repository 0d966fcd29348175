"""
Minimal ABIs used by the striker.
"""

# Uniswap V2 style pair (getReserves + token ordering)
UNISWAP_V2_PAIR_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "getReserves",
        "outputs": [
            {"name": "reserve0", "type": "uint112"},
            {"name": "reserve1", "type": "uint112"},
            {"name": "blockTimestampLast", "type": "uint32"},
        ],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "token0",
        "outputs": [{"name": "", "type": "address"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "token1",
        "outputs": [{"name": "", "type": "address"}],
        "type": "function",
    },
]

# Argument types of the strike call: (asset, amount, path)
STRIKE_ARG_TYPES = ["address", "uint256", "address[]"]

# Non-indexed data of a V2 Swap log: amount0In, amount1In, amount0Out, amount1Out
SWAP_DATA_TYPES = ["uint256", "uint256", "uint256", "uint256"]

# EIP-1559 transaction type
DYNAMIC_FEE_TX_TYPE = 2
