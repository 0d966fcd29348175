"""
Shared fixtures: a baseline config and an in-memory chain client.
"""

import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest
from eth_abi import encode
from web3 import Web3

from whale_striker.config import StrikerConfig
from whale_striker.exceptions import ReserveReadError, TransportClosedError
from whale_striker.types import FeeQuote, ReserveSnapshot

WETH = "0x4200000000000000000000000000000000000006"
USDC = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
POOL = "0x88a43bb75941904d47401946215162a26bc773dc"
TARGET = "0x83ef5c401faa5b9674bafacfb089b30bac67c9a0"
SIGNER = "0x000000000000000000000000000000000000dEaD"

ETH = 10**18

BASE_CONFIG: Dict[str, Any] = {
    "chain_id": 8453,
    "target_contract": TARGET,
    "pool_address": POOL,
    "assets": {"borrow": WETH, "quote": USDC},
    "whale_min_eth": "10",
    "gas_limit": 850000,
    "safety_margin_eth": "0.005",
    "borrow_fee_bps": 5,
    "native_usd_rate": 3300,
    "fallback_loan_eth": "5",
    "loan_tiers": [
        {"min_usd": 200, "amount_eth": "100"},
        {"min_usd": 100, "amount_eth": "75"},
        {"min_usd": 0, "amount_eth": "25"},
    ],
    "reconnect_delay_sec": 5,
}


def usd_balance(usd: int, rate: int = 3300) -> int:
    """Wei balance worth (just under) ``usd`` at ``rate``."""
    return usd * ETH // rate


def swap_log(amounts, address: str = POOL, block: int = 1) -> Dict[str, Any]:
    """Raw subscription log for a V2 swap with the given four amounts."""
    return {
        "address": Web3.to_checksum_address(address),
        "topics": [Web3.keccak(text="Swap(address,uint256,uint256,uint256,uint256,address)")],
        "data": encode(["uint256"] * 4, list(amounts)),
        "blockNumber": block,
        "transactionHash": bytes([block % 256]) * 32,
    }


def profit_bytes(profit_wei: int) -> bytes:
    return encode(["int256"], [profit_wei])


class FakeChainClient:
    """In-memory ChainClient with scripted responses."""

    def __init__(
        self,
        balance: int = usd_balance(250),
        reserves: Optional[ReserveSnapshot] = None,
        reserves_error: Optional[Exception] = None,
        pool_tokens: Tuple[str, str] = (Web3.to_checksum_address(WETH), Web3.to_checksum_address(USDC)),
        call_result: bytes = profit_bytes(ETH),
        call_error: Optional[Exception] = None,
        fee_quote: Optional[FeeQuote] = None,
        fee_error: Optional[Exception] = None,
        send_error: Optional[Exception] = None,
        logs: Optional[List[Dict[str, Any]]] = None,
        stream_error: Optional[Exception] = None,
        connect_error: Optional[Exception] = None,
    ):
        self.balance = balance
        self.reserves = reserves or ReserveSnapshot(2000 * ETH, 5_000_000 * 10**6)
        self.reserves_error = reserves_error
        self.pool_tokens = pool_tokens
        self.call_result = call_result
        self.call_error = call_error
        self.fee_quote = fee_quote or FeeQuote(
            max_fee_per_gas=10**9, max_priority_fee_per_gas=10**8, gas_price=10**9
        )
        self.fee_error = fee_error
        self.send_error = send_error
        self.logs = logs or []
        self.stream_error = stream_error if stream_error is not None else TransportClosedError("closed")
        self.connect_error = connect_error

        self.connected = False
        self.closed = False
        self.balance_calls = 0
        self.reserve_calls = 0
        self.calls: List[Tuple[str, bytes, Optional[str]]] = []
        self.sent: List[Dict[str, Any]] = []
        self.subscribed_topics: Optional[List[str]] = None

    @property
    def signer_address(self) -> str:
        return SIGNER

    async def connect(self) -> None:
        if self.connect_error:
            raise self.connect_error
        self.connected = True

    async def close(self) -> None:
        self.closed = True

    async def get_balance(self, address: str) -> int:
        self.balance_calls += 1
        return self.balance

    async def get_pool_tokens(self, pool: str) -> Tuple[str, str]:
        return self.pool_tokens

    async def get_reserves(self, pool: str) -> ReserveSnapshot:
        self.reserve_calls += 1
        if self.reserves_error:
            raise self.reserves_error
        return self.reserves

    async def call(self, to: str, data: bytes, from_: Optional[str] = None) -> bytes:
        self.calls.append((to, data, from_))
        if self.call_error:
            raise self.call_error
        return self.call_result

    async def get_fee_data(self) -> FeeQuote:
        if self.fee_error:
            raise self.fee_error
        return self.fee_quote

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        if self.send_error:
            raise self.send_error
        self.sent.append(tx)
        return "0x" + f"{len(self.sent):064x}"

    async def subscribe_logs(self, topics):
        self.subscribed_topics = list(topics)
        for log in self.logs:
            yield log
        raise self.stream_error


@pytest.fixture
def config_dict() -> Dict[str, Any]:
    return copy.deepcopy(BASE_CONFIG)


@pytest.fixture
def config(config_dict) -> StrikerConfig:
    return StrikerConfig.from_dict(config_dict)


@pytest.fixture
def make_client():
    """Factory for FakeChainClient with overrides."""
    return FakeChainClient


@pytest.fixture
def reserve_error():
    return ReserveReadError("pool paused", pool=POOL)
