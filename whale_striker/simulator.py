"""
Strike simulation: calldata encoding, dry-run call and cost breakdown.

The target contract reports its own profit estimate as the return value of
the read-only call. That number is trusted as-is; nothing here re-derives it.
"""

from typing import Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from .abi import STRIKE_ARG_TYPES
from .config import StrikerConfig
from .exceptions import SimulationError
from .types import FeeQuote, LoanDecision, StrikeAttempt
from .utils import format_ether, get_logger

logger = get_logger(__name__)

BPS_DENOMINATOR = 10_000


def encode_strike_calldata(config: StrikerConfig, loan_amount: int) -> bytes:
    """Encode ``strike_signature(borrow_asset, loan_amount, [borrow, quote])``."""
    selector = function_signature_to_4byte_selector(config.strike_signature)
    args = encode(STRIKE_ARG_TYPES, [config.borrow_asset, loan_amount, config.strike_path])
    return selector + args


def decode_profit(raw: bytes) -> int:
    """
    Interpret the simulation return data as a signed int256 profit estimate.

    Raises:
        SimulationError: If the return data is empty or shorter than one word
    """
    if not raw:
        raise SimulationError("Simulation returned no data")
    if len(raw) < 32:
        raise SimulationError(f"Simulation returned {len(raw)} bytes, expected at least 32")
    (profit,) = decode(["int256"], raw[:32])
    return int(profit)


def compute_total_cost(
    config: StrikerConfig, loan_amount: int, fee_quote: FeeQuote
) -> Tuple[int, int, int]:
    """
    Cost of a strike.

    ``gas_limit * effective_gas_price + safety_margin + loan * fee_bps / 10000``

    Returns:
        Tuple of (gas_cost, borrow_fee, total_cost)
    """
    gas_cost = config.gas_limit * fee_quote.effective_gas_price
    borrow_fee = loan_amount * config.borrow_fee_bps // BPS_DENOMINATOR
    return gas_cost, borrow_fee, gas_cost + config.safety_margin_wei + borrow_fee


class StrikeSimulator:
    """Dry-runs a strike against the target contract."""

    def __init__(self, config: StrikerConfig):
        self.config = config

    async def simulate(self, client, loan: LoanDecision) -> StrikeAttempt:
        """
        Simulate a strike for ``loan``.

        Raises:
            SimulationError: On revert, malformed return data or missing fee data
        """
        calldata = encode_strike_calldata(self.config, loan.amount)

        try:
            raw = await client.call(
                self.config.target_contract, calldata, from_=client.signer_address
            )
        except SimulationError:
            raise
        except Exception as e:
            raise SimulationError(
                f"Simulation call failed: {e}", loan_amount=loan.amount
            ) from e

        profit = decode_profit(raw)

        try:
            fee_quote = await client.get_fee_data()
            gas_cost, borrow_fee, _ = compute_total_cost(self.config, loan.amount, fee_quote)
        except SimulationError:
            raise
        except Exception as e:
            raise SimulationError(
                f"Fee data unavailable: {e}", loan_amount=loan.amount
            ) from e

        attempt = StrikeAttempt(
            loan=loan,
            calldata=calldata,
            simulated_profit=profit,
            fee_quote=fee_quote,
            gas_cost=gas_cost,
            borrow_fee=borrow_fee,
            safety_margin=self.config.safety_margin_wei,
        )
        logger.debug(
            f"Simulated loan {format_ether(loan.amount)}: profit {format_ether(profit)}, "
            f"cost {format_ether(attempt.total_cost)} (gas {format_ether(gas_cost)}, "
            f"fee {format_ether(borrow_fee)})"
        )
        return attempt
