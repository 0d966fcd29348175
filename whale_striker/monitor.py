"""
Monitor loop and per-event strike pipeline.

State machine::

    DISCONNECTED -> SUBSCRIBING -> LISTENING -> (transport closed) -> DISCONNECTED
         ^                                                                |
         +------------------ fixed reconnect delay ------------------------+

Every inbound swap log is handled in its own asyncio task, so a slow
simulation for one event never delays the next. Handling tasks share the
chain client read-only and are never cancelled. Two overlapping whale swaps
may both submit a strike; there is no in-flight deduplication.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Set

from .config import StrikerConfig
from .exceptions import ConfigurationError, SimulationError
from .execution_gate import ExecutionGate, decide
from .loan_sizer import LoanSizer, resolve_reserve_slot
from .opportunity_filter import is_whale_event, parse_swap_event
from .simulator import StrikeSimulator
from .types import GateDecision, MonitorState
from .utils import format_ether, get_logger

logger = get_logger(__name__)


class HandleOutcome(Enum):
    """How one handling cycle ended."""

    MALFORMED = "malformed"
    BELOW_THRESHOLD = "below_threshold"
    ZERO_LOAN = "zero_loan"
    SIMULATION_FAILED = "simulation_failed"
    UNPROFITABLE = "unprofitable"
    SUBMITTED = "submitted"
    DRY_RUN = "dry_run"
    SUBMISSION_FAILED = "submission_failed"
    ERROR = "error"


@dataclass
class MonitorStats:
    """Counters for observability. Mutated only from the event loop thread."""

    events_seen: int = 0
    malformed: int = 0
    whales: int = 0
    simulations_failed: int = 0
    strikes_submitted: int = 0
    submissions_failed: int = 0
    restarts: int = 0

    def summary(self) -> str:
        return (
            f"events={self.events_seen} malformed={self.malformed} whales={self.whales} "
            f"sim_failed={self.simulations_failed} submitted={self.strikes_submitted} "
            f"submit_failed={self.submissions_failed} restarts={self.restarts}"
        )


class StrikePipeline:
    """Filter -> size -> simulate -> gate for a single swap log."""

    def __init__(
        self,
        config: StrikerConfig,
        client,
        reserve_slot: int,
        stats: Optional[MonitorStats] = None,
    ):
        self.config = config
        self.client = client
        self.stats = stats or MonitorStats()
        self.sizer = LoanSizer(config, reserve_slot)
        self.simulator = StrikeSimulator(config)
        self.gate = ExecutionGate(config)

    async def handle_log(self, log: Mapping[str, Any]) -> HandleOutcome:
        """Run one handling cycle. Never raises."""
        try:
            return await self._handle(log)
        except Exception as e:
            logger.warning(f"Strike handling aborted: {e!r}")
            return HandleOutcome.ERROR

    async def _handle(self, log: Mapping[str, Any]) -> HandleOutcome:
        event = parse_swap_event(log)
        if event is None:
            self.stats.malformed += 1
            return HandleOutcome.MALFORMED

        if not is_whale_event(event.amounts, self.config.whale_min_wei):
            return HandleOutcome.BELOW_THRESHOLD

        self.stats.whales += 1
        logger.info(
            f"Whale swap {format_ether(event.max_amount)} at {event.address} "
            f"(block {event.block_number}, tx {event.tx_hash})"
        )

        loan = await self.sizer.size(self.client)
        if loan.is_zero:
            logger.info("Pool depth allows no loan, skipping opportunity")
            return HandleOutcome.ZERO_LOAN

        try:
            attempt = await self.simulator.simulate(self.client, loan)
        except SimulationError as e:
            self.stats.simulations_failed += 1
            logger.warning(f"Simulation failed for loan {format_ether(loan.amount)}: {e}")
            return HandleOutcome.SIMULATION_FAILED

        if decide(attempt) is GateDecision.SKIP:
            logger.debug(
                f"Unprofitable: profit {format_ether(attempt.simulated_profit)} "
                f"vs cost {format_ether(attempt.total_cost)}"
            )
            return HandleOutcome.UNPROFITABLE

        tx_hash = await self.gate.execute(self.client, attempt)
        if tx_hash is None:
            self.stats.submissions_failed += 1
            return HandleOutcome.SUBMISSION_FAILED
        if self.config.dry_run:
            return HandleOutcome.DRY_RUN

        self.stats.strikes_submitted += 1
        return HandleOutcome.SUBMITTED


class StrikeMonitor:
    """
    Owns the subscription lifecycle.

    ``client_factory`` builds a fresh, unconnected ``ChainClient`` for each
    run; after any transport closure the monitor waits exactly
    ``reconnect_delay_sec`` and starts over. There is no backoff growth and
    no retry cap.
    """

    def __init__(
        self,
        config: StrikerConfig,
        client_factory: Callable[[], Any],
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.client_factory = client_factory
        self._sleep = sleep
        self.state = MonitorState.DISCONNECTED
        self.stats = MonitorStats()
        self.reserve_slot: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._run_task: Optional[asyncio.Task] = None
        self._stopping = False

    def stop(self) -> None:
        """
        Ask the loop to exit.

        An active subscription is cancelled right away, so a quiet pool does
        not hold the loop open. In-flight handling tasks still run to
        completion.
        """
        self._stopping = True
        if self._run_task is not None and not self._run_task.done():
            self._run_task.cancel()

    @property
    def inflight(self) -> int:
        return len(self._tasks)

    async def run_forever(self) -> None:
        """
        Subscribe, listen, and restart after every transport closure.

        Raises:
            ConfigurationError: If the pool does not hold the borrow asset
        """
        if self.config.max_inflight_strikes > 0:
            self._semaphore = asyncio.Semaphore(self.config.max_inflight_strikes)

        while not self._stopping:
            self._run_task = asyncio.create_task(self.run_once())
            try:
                await self._run_task
                logger.warning("Log subscription ended")
            except asyncio.CancelledError:
                if not self._stopping:
                    raise
            except ConfigurationError:
                raise
            except Exception as e:
                logger.warning(f"Transport closed: {e}")
            finally:
                self._run_task = None

            if self._stopping:
                break

            self.stats.restarts += 1
            logger.info(
                f"Restarting in {self.config.reconnect_delay_sec:g}s "
                f"(restart #{self.stats.restarts}; {self.stats.summary()})"
            )
            await self._sleep(self.config.reconnect_delay_sec)

        await self.drain()
        logger.info(f"Monitor stopped ({self.stats.summary()})")

    async def run_once(self) -> None:
        """One connection lifetime: connect, subscribe, spawn a task per log."""
        client = self.client_factory()
        self.state = MonitorState.SUBSCRIBING
        try:
            await client.connect()
            if self.reserve_slot is None:
                self.reserve_slot = await resolve_reserve_slot(client, self.config)

            pipeline = StrikePipeline(self.config, client, self.reserve_slot, self.stats)

            self.state = MonitorState.LISTENING
            logger.info(
                f"Listening for whale swaps >= {format_ether(self.config.whale_min_wei)}"
            )
            async for log in client.subscribe_logs([self.config.swap_topic]):
                self.stats.events_seen += 1
                self._spawn(pipeline, log)
                if self._stopping:
                    break
        finally:
            self.state = MonitorState.DISCONNECTED
            await client.close()

    def _spawn(self, pipeline: StrikePipeline, log: Mapping[str, Any]) -> None:
        task = asyncio.create_task(self._run_bounded(pipeline, log))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_bounded(self, pipeline: StrikePipeline, log: Mapping[str, Any]) -> HandleOutcome:
        if self._semaphore is None:
            return await pipeline.handle_log(log)
        async with self._semaphore:
            return await pipeline.handle_log(log)

    async def drain(self) -> None:
        """Wait for in-flight handling tasks to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
