"""
Chain client capability interface and its web3 implementation.

The decision core only talks to ``ChainClient``; tests substitute fakes and
production wires in ``Web3ChainClient`` over a WebSocket provider.
"""

from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3, WebSocketProvider
from web3.exceptions import ContractLogicError

from .abi import UNISWAP_V2_PAIR_ABI
from .exceptions import (
    ReserveReadError,
    SimulationError,
    SubmissionError,
    TransportClosedError,
)
from .types import FeeQuote, ReserveSnapshot
from .utils import get_logger, mask_url

logger = get_logger(__name__)


@runtime_checkable
class ChainClient(Protocol):
    """Capabilities the striker consumes from a chain node."""

    @property
    def signer_address(self) -> str:
        """Address of the treasury signer."""
        ...

    async def connect(self) -> None:
        """Open the transport."""
        ...

    async def close(self) -> None:
        """Close the transport."""
        ...

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        ...

    async def get_pool_tokens(self, pool: str) -> Tuple[str, str]:
        """Return (token0, token1) of a V2-style pair."""
        ...

    async def get_reserves(self, pool: str) -> ReserveSnapshot:
        """Read the current reserve pair of a V2-style pair."""
        ...

    async def call(self, to: str, data: bytes, from_: Optional[str] = None) -> bytes:
        """Read-only contract call; raises on revert."""
        ...

    async def get_fee_data(self) -> FeeQuote:
        """Current fee market quote."""
        ...

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        """Sign and broadcast; returns the transaction hash."""
        ...

    def subscribe_logs(self, topics: List[str]) -> AsyncIterator[Dict[str, Any]]:
        """Yield raw logs until the transport closes."""
        ...


class Web3ChainClient:
    """
    ``ChainClient`` backed by ``AsyncWeb3`` over a WebSocket endpoint.

    One instance per monitor run; the monitor builds a fresh one after every
    transport closure.
    """

    def __init__(self, wss_url: str, private_key: str, chain_id: int):
        """
        Initialize client.

        Args:
            wss_url: WebSocket RPC endpoint
            private_key: Treasury signing key (never logged)
            chain_id: Chain id stamped on every transaction
        """
        self.wss_url = wss_url
        self.chain_id = chain_id
        self.account: LocalAccount = Account.from_key(private_key)
        self.w3 = AsyncWeb3(WebSocketProvider(wss_url))

    @property
    def signer_address(self) -> str:
        return self.account.address

    async def connect(self) -> None:
        await self.w3.provider.connect()
        logger.info(f"Connected to {mask_url(self.wss_url)} as {self.account.address}")

    async def close(self) -> None:
        try:
            await self.w3.provider.disconnect()
        except Exception as e:
            logger.debug(f"Ignoring error while disconnecting: {e}")

    async def get_balance(self, address: str) -> int:
        return int(await self.w3.eth.get_balance(Web3.to_checksum_address(address)))

    def _pair(self, pool: str):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(pool), abi=UNISWAP_V2_PAIR_ABI
        )

    async def get_pool_tokens(self, pool: str) -> Tuple[str, str]:
        pair = self._pair(pool)
        token0 = await pair.functions.token0().call()
        token1 = await pair.functions.token1().call()
        return Web3.to_checksum_address(token0), Web3.to_checksum_address(token1)

    async def get_reserves(self, pool: str) -> ReserveSnapshot:
        try:
            reserves = await self._pair(pool).functions.getReserves().call()
            return ReserveSnapshot(reserve0=int(reserves[0]), reserve1=int(reserves[1]))
        except Exception as e:
            raise ReserveReadError(f"Failed to read reserves of {pool}: {e}", pool=pool) from e

    async def call(self, to: str, data: bytes, from_: Optional[str] = None) -> bytes:
        tx = {"to": Web3.to_checksum_address(to), "data": Web3.to_hex(data)}
        if from_:
            tx["from"] = Web3.to_checksum_address(from_)
        try:
            return bytes(await self.w3.eth.call(tx))
        except ContractLogicError as e:
            raise SimulationError(f"Simulation reverted: {e}") from e

    async def get_fee_data(self) -> FeeQuote:
        """
        Build an EIP-1559 quote: maxFee = 2 * baseFee + priorityFee.

        Falls back to a legacy gas price on chains without a base fee.
        """
        block = await self.w3.eth.get_block("latest")
        gas_price = int(await self.w3.eth.gas_price)
        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return FeeQuote(max_fee_per_gas=None, max_priority_fee_per_gas=None, gas_price=gas_price)

        priority_fee = int(await self.w3.eth.max_priority_fee)
        return FeeQuote(
            max_fee_per_gas=2 * int(base_fee) + priority_fee,
            max_priority_fee_per_gas=priority_fee,
            gas_price=gas_price,
        )

    async def send_transaction(self, tx: Dict[str, Any]) -> str:
        tx = dict(tx)
        tx.setdefault("chainId", self.chain_id)
        tx.setdefault("value", 0)
        try:
            tx["nonce"] = await self.w3.eth.get_transaction_count(
                self.account.address, "pending"
            )
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise SubmissionError(f"Transaction rejected: {e}", to=tx.get("to")) from e
        return Web3.to_hex(tx_hash)

    async def subscribe_logs(self, topics: List[str]) -> AsyncIterator[Dict[str, Any]]:
        subscription_id = await self.w3.eth.subscribe("logs", {"topics": topics})
        logger.info(f"Subscribed to logs {topics} (id={subscription_id})")
        try:
            async for payload in self.w3.socket.process_subscriptions():
                result = payload.get("result") if isinstance(payload, dict) else None
                if result is not None:
                    yield result
        except Exception as e:
            raise TransportClosedError(
                f"Log subscription closed: {e}", endpoint=mask_url(self.wss_url)
            ) from e
        raise TransportClosedError(
            "Log subscription ended", endpoint=mask_url(self.wss_url)
        )
