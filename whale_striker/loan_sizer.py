"""
Loan sizing with a liquidity guard.

Two steps:
1. Pick an "ideal" borrow amount from the tier table using the treasury's
   approximate USD value (fixed native/USD rate, coarse on purpose).
2. Clamp it to 10% of the borrowed asset's reserve in the configured pool.

If reserves cannot be read the fixed fallback amount is used instead, so
sizing never blocks the monitor loop.
"""

from typing import Optional

from .config import LIQUIDITY_GUARD_DIVISOR, ConfigError, StrikerConfig
from .types import LoanDecision, ReserveSnapshot
from .utils import format_ether, get_logger, wei_to_ether

logger = get_logger(__name__)


def ideal_loan_amount(treasury_balance_wei: int, config: StrikerConfig) -> int:
    """
    Select the tiered borrow amount for a treasury balance.

    Tiers are sorted highest ``min_usd`` first; the first tier the balance
    clears wins. Below every tier the smallest tier's amount is used.
    """
    usd_value = wei_to_ether(treasury_balance_wei) * config.native_usd_rate
    for tier in config.loan_tiers:
        if usd_value >= tier.min_usd:
            return tier.amount_wei
    return config.loan_tiers[-1].amount_wei


def compute_safe_loan(
    treasury_balance_wei: int,
    reserves: Optional[ReserveSnapshot],
    config: StrikerConfig,
    reserve_slot: int,
) -> LoanDecision:
    """
    Compute the borrow amount for one strike attempt.

    Args:
        treasury_balance_wei: Signer's native balance
        reserves: Fresh reserve snapshot, or None if it could not be read
        config: Striker configuration
        reserve_slot: Reserve slot (0/1) holding the borrowed asset

    Returns:
        LoanDecision with ``min(ideal, reserve // 10)`` or the fallback amount
    """
    ideal = ideal_loan_amount(treasury_balance_wei, config)

    if reserves is None:
        return LoanDecision(
            amount=config.fallback_loan_wei,
            ideal_amount=ideal,
            scaled=False,
            fallback=True,
        )

    max_safe = reserves.reserve_for(reserve_slot) // LIQUIDITY_GUARD_DIVISOR
    if ideal > max_safe:
        return LoanDecision(amount=max_safe, ideal_amount=ideal, scaled=True)
    return LoanDecision(amount=ideal, ideal_amount=ideal, scaled=False)


async def resolve_reserve_slot(client, config: StrikerConfig) -> int:
    """
    Find which reserve slot of the pool holds the borrowed asset.

    A configured ``reserve_slot`` wins. Otherwise the pool's token0/token1 are
    compared against the borrow asset.

    Raises:
        ConfigError: If the pool does not contain the borrow asset
    """
    if config.reserve_slot is not None:
        return config.reserve_slot

    token0, token1 = await client.get_pool_tokens(config.pool_address)
    borrow = config.borrow_asset.lower()
    if token0.lower() == borrow:
        slot = 0
    elif token1.lower() == borrow:
        slot = 1
    else:
        raise ConfigError(
            f"Pool {config.pool_address} ({token0}, {token1}) does not hold "
            f"borrow asset {config.borrow_asset}"
        )

    logger.info(f"Borrow asset {config.borrow_asset} is reserve{slot} of {config.pool_address}")
    return slot


class LoanSizer:
    """Reads balance and reserves through a chain client and sizes the loan."""

    def __init__(self, config: StrikerConfig, reserve_slot: int):
        self.config = config
        self.reserve_slot = reserve_slot

    async def size(self, client) -> LoanDecision:
        """
        Size a loan against live pool depth.

        Balance read errors propagate (the handling cycle is abandoned);
        reserve read errors fall back to the fixed conservative amount.
        """
        balance = await client.get_balance(client.signer_address)

        reserves: Optional[ReserveSnapshot]
        try:
            reserves = await client.get_reserves(self.config.pool_address)
        except Exception as e:
            logger.warning(
                f"Reserve read failed for {self.config.pool_address}, "
                f"using fallback {format_ether(self.config.fallback_loan_wei)}: {e}"
            )
            reserves = None

        decision = compute_safe_loan(balance, reserves, self.config, self.reserve_slot)

        if decision.scaled:
            logger.info(
                f"SCALING: loan too big for pool, adjusting "
                f"{format_ether(decision.ideal_amount)} -> {format_ether(decision.amount)}"
            )
        elif not decision.fallback:
            logger.debug(f"Loan sized at {format_ether(decision.amount)}")

        return decision
