"""
Core data types for the whale striker decision pipeline.

Every record here lives for at most one event-handling cycle; nothing is
cached or persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .exceptions import SimulationError


class MonitorState(Enum):
    """Lifecycle states of the monitor loop."""

    DISCONNECTED = "disconnected"
    SUBSCRIBING = "subscribing"
    LISTENING = "listening"


class GateDecision(Enum):
    """Outcome of the execution gate."""

    EXECUTE = "execute"
    SKIP = "skip"


@dataclass(frozen=True)
class ReserveSnapshot:
    """
    Reserve pair of a V2-style pool, read fresh for one sizing decision.

    Attributes:
        reserve0: Reserve of the pool's token0 (smallest unit)
        reserve1: Reserve of the pool's token1 (smallest unit)
    """

    reserve0: int
    reserve1: int

    def reserve_for(self, slot: int) -> int:
        """Return the reserve stored in ``slot`` (0 or 1)."""
        if slot == 0:
            return self.reserve0
        if slot == 1:
            return self.reserve1
        raise ValueError(f"Reserve slot must be 0 or 1, got {slot}")


@dataclass(frozen=True)
class LoanDecision:
    """
    Borrow amount chosen for one strike attempt.

    Attributes:
        amount: Amount to borrow (wei)
        ideal_amount: Tier amount before the liquidity clamp
        scaled: True if the amount was clamped to 10% of pool depth
        fallback: True if reserves were unreadable and the fixed fallback was used
    """

    amount: int
    ideal_amount: int
    scaled: bool = False
    fallback: bool = False

    @property
    def is_zero(self) -> bool:
        return self.amount <= 0


@dataclass(frozen=True)
class SwapEvent:
    """Decoded swap log."""

    address: str
    topics: Tuple[str, ...]
    amounts: Tuple[int, ...]
    block_number: Optional[int] = None
    tx_hash: Optional[str] = None

    @property
    def max_amount(self) -> int:
        return max(self.amounts) if self.amounts else 0


@dataclass(frozen=True)
class FeeQuote:
    """
    Fee market snapshot.

    Attributes:
        max_fee_per_gas: EIP-1559 max fee (wei), if the chain reports one
        max_priority_fee_per_gas: EIP-1559 tip (wei)
        gas_price: Legacy gas price (wei)
    """

    max_fee_per_gas: Optional[int]
    max_priority_fee_per_gas: Optional[int]
    gas_price: Optional[int] = None

    @property
    def effective_gas_price(self) -> int:
        """Max fee if present, otherwise the legacy gas price. Zero is a valid quote."""
        if self.max_fee_per_gas is not None:
            return self.max_fee_per_gas
        if self.gas_price is not None:
            return self.gas_price
        raise SimulationError("Fee quote has neither maxFeePerGas nor gasPrice")


@dataclass(frozen=True)
class StrikeAttempt:
    """
    One simulated strike and its cost breakdown.

    ``simulated_profit`` is the target contract's own profit estimate and is
    taken at face value.
    """

    loan: LoanDecision
    calldata: bytes
    simulated_profit: int
    fee_quote: FeeQuote
    gas_cost: int
    borrow_fee: int
    safety_margin: int
    total_cost: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(
            self, "total_cost", self.gas_cost + self.safety_margin + self.borrow_fee
        )

    @property
    def net_profit(self) -> int:
        return self.simulated_profit - self.total_cost
