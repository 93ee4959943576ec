"""Interval scheduler adapter.

Owns the single repeating timer that drives check runs. Restarting the
timer with a new delay cancels the old one first, so at most one timer
is ever armed.
"""

import asyncio
import logging
import signal

from herald.core.models import MIN_CHECK_DELAY_MS, CheckResult
from herald.core.ports import CheckPort

logger = logging.getLogger(__name__)


class IntervalScheduler:
    """Asyncio-based repeating timer for periodic check runs."""

    def __init__(self, check_port: CheckPort | None = None):
        """Initialize the scheduler in the idle state.

        Args:
            check_port: CheckPort implementation to call on each tick
                (can be set later).
        """
        self.check_port = check_port
        self.delay_ms: int | None = None
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()
        self._stopped = asyncio.Event()
        self._cycle_number = 0

    @property
    def running(self) -> bool:
        """True while a timer is armed."""
        return self._timer is not None and not self._timer.done()

    async def start(self, delay_ms: int) -> None:
        """Cancel any armed timer and arm a new one firing every delay_ms.

        Runs already in progress are left to finish.

        Raises:
            ValueError: If check_port is not set or delay_ms is below the
                minimum. The current timer is untouched in that case.
        """
        if self.check_port is None:
            raise ValueError("check_port must be set before starting the scheduler")
        if delay_ms < MIN_CHECK_DELAY_MS:
            raise ValueError(
                f"Delay must be at least {MIN_CHECK_DELAY_MS}ms (1 second)"
            )

        await self._cancel_timer()

        self.delay_ms = delay_ms
        self._stopped.clear()
        self._timer = asyncio.create_task(self._run_loop(delay_ms))
        logger.info(f"Checking findings every {delay_ms}ms")

    async def shutdown(self) -> None:
        """Cancel the timer and wait for in-flight runs. Used on process exit."""
        await self._cancel_timer()
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        self._stopped.set()
        logger.info("Scheduler stopped")

    async def run_until_stopped(self) -> None:
        """Block until shutdown, installing SIGINT/SIGTERM handlers."""
        self._setup_signal_handlers()
        await self._stopped.wait()

    async def trigger(self) -> CheckResult:
        """Run the check pipeline now, out-of-band, without touching the timer."""
        if self.check_port is None:
            raise ValueError("check_port must be set to run a check")

        try:
            logger.info("Running manual check")
            result = await self.check_port.run_check()
            logger.info(
                f"Check completed: {result.findings_fetched} fetched, "
                f"{result.findings_sent} sent"
            )
            return result
        except Exception as e:
            logger.error(f"Error in check: {e}", exc_info=True)
            raise

    async def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        try:
            loop = asyncio.get_running_loop()

            def _handle_signal(sig: int) -> None:
                logger.info(f"Received signal {sig}, initiating graceful shutdown...")
                asyncio.create_task(self.shutdown())

            loop.add_signal_handler(signal.SIGTERM, _handle_signal, signal.SIGTERM)
            loop.add_signal_handler(signal.SIGINT, _handle_signal, signal.SIGINT)
        except NotImplementedError:
            # Signal handlers not available on Windows
            logger.debug("Signal handlers not available on this platform")

    async def _run_loop(self, delay_ms: int) -> None:
        """Fire a tick every delay_ms until cancelled."""
        while True:
            await asyncio.sleep(delay_ms / 1000)

            tick = asyncio.create_task(self._tick())
            self._in_flight.add(tick)
            tick.add_done_callback(self._in_flight.discard)

            # Shielded so a restart cancels the timer, not the run
            await asyncio.shield(tick)

    async def _tick(self) -> None:
        """Run one scheduled check, logging instead of raising."""
        assert self.check_port is not None
        self._cycle_number += 1
        cycle_number = self._cycle_number
        loop = asyncio.get_running_loop()

        try:
            logger.debug(f"Starting check #{cycle_number}")
            start_time = loop.time()

            result = await self.check_port.run_check()

            elapsed = loop.time() - start_time
            logger.info(
                f"Check #{cycle_number} completed in {elapsed:.2f}s: "
                f"{result.findings_fetched} fetched, "
                f"{result.findings_sent} sent, "
                f"{result.failed_groups} failed group(s)"
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error checking findings in check #{cycle_number}: {e}", exc_info=True)
