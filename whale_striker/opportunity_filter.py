"""
Whale filter for swap logs.

A malformed log is treated as "not a whale" so one bad record never stops
the subscription.
"""

from typing import Any, Mapping, Optional, Sequence, Tuple

from eth_abi import decode
from hexbytes import HexBytes
from web3 import Web3

from .abi import SWAP_DATA_TYPES
from .types import SwapEvent
from .utils import get_logger

logger = get_logger(__name__)


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes(HexBytes(value))


def _to_hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    return str(value)


def decode_swap_amounts(data: Any) -> Optional[Tuple[int, ...]]:
    """
    Decode the four uint256 amounts of a swap log's data field.

    Returns:
        Tuple of amounts, or None if the data does not decode
    """
    try:
        return tuple(int(v) for v in decode(SWAP_DATA_TYPES, _to_bytes(data)))
    except Exception as e:
        logger.debug(f"Discarding undecodable swap log data: {e}")
        return None


def is_whale_event(amounts: Optional[Sequence[int]], threshold_wei: int) -> bool:
    """True if the largest amount meets or exceeds ``threshold_wei``."""
    if not amounts:
        return False
    return max(amounts) >= threshold_wei


def parse_swap_event(log: Mapping[str, Any]) -> Optional[SwapEvent]:
    """Build a SwapEvent from a raw subscription log, or None if malformed."""
    amounts = decode_swap_amounts(log.get("data", b""))
    if amounts is None:
        return None

    block_number = log.get("blockNumber")
    if isinstance(block_number, str):
        block_number = int(block_number, 16)

    tx_hash = log.get("transactionHash")
    return SwapEvent(
        address=str(log.get("address", "")),
        topics=tuple(_to_hex(t) for t in log.get("topics", [])),
        amounts=amounts,
        block_number=block_number,
        tx_hash=_to_hex(tx_hash) if tx_hash is not None else None,
    )
