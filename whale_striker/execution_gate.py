"""
Execution gate: submit a strike only when simulated profit beats total cost.

Exactly one submission per qualifying event. Submission failures (nonce
conflicts, underpriced, node rejection) are logged and swallowed; there is
no retry and no cancellation of in-flight transactions.
"""

from typing import Any, Dict, Optional

from .abi import DYNAMIC_FEE_TX_TYPE
from .config import StrikerConfig
from .types import GateDecision, StrikeAttempt
from .utils import format_ether, get_logger

logger = get_logger(__name__)


def decide(attempt: StrikeAttempt) -> GateDecision:
    """EXECUTE iff simulated profit is strictly greater than total cost."""
    if attempt.simulated_profit > attempt.total_cost:
        return GateDecision.EXECUTE
    return GateDecision.SKIP


def build_strike_transaction(config: StrikerConfig, attempt: StrikeAttempt) -> Dict[str, Any]:
    """Dynamic-fee transaction carrying the simulated calldata."""
    fee = attempt.fee_quote
    tx: Dict[str, Any] = {
        "to": config.target_contract,
        "data": attempt.calldata,
        "gas": config.gas_limit,
        "chainId": config.chain_id,
        "type": DYNAMIC_FEE_TX_TYPE,
        "maxFeePerGas": fee.effective_gas_price,
        "maxPriorityFeePerGas": fee.max_priority_fee_per_gas or 0,
    }
    return tx


class ExecutionGate:
    """Applies the profitability gate and submits qualifying strikes."""

    def __init__(self, config: StrikerConfig):
        self.config = config

    async def execute(self, client, attempt: StrikeAttempt) -> Optional[str]:
        """
        Submit ``attempt`` if profitable.

        Returns:
            Transaction hash, ``"dry-run"`` in dry-run mode, or None when
            skipped or rejected
        """
        if decide(attempt) is GateDecision.SKIP:
            logger.debug(
                f"Skipping strike: profit {format_ether(attempt.simulated_profit)} "
                f"<= cost {format_ether(attempt.total_cost)}"
            )
            return None

        logger.info(
            f"LIQUIDITY-SAFE PROFIT: {format_ether(attempt.net_profit)} net "
            f"(loan {format_ether(attempt.loan.amount)}, "
            f"profit {format_ether(attempt.simulated_profit)}, "
            f"cost {format_ether(attempt.total_cost)})"
        )

        tx = build_strike_transaction(self.config, attempt)

        if self.config.dry_run:
            logger.info(f"[DRY RUN] Would submit strike to {tx['to']} with gas {tx['gas']}")
            return "dry-run"

        try:
            tx_hash = await client.send_transaction(tx)
        except Exception as e:
            logger.error(f"Strike submission failed: {e}")
            return None

        logger.info(f"STRIKE FIRED: {tx_hash}")
        return tx_hash
