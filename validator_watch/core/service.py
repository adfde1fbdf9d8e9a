"""
Monitor Service

Runs the monitor on a fixed interval and delivers its alerts.

Each tick is awaited before the next one is scheduled, so runs never overlap.
A failed run is logged and produces no alerts; the next tick tries again.
"""

import asyncio
import logging
import signal
from typing import List, Optional, TYPE_CHECKING

from ..config import DEFAULT_MONITOR_INTERVAL_SEC
from ..exceptions import ValidatorWatchError
from ..models import Alert
from .monitor import Monitor

if TYPE_CHECKING:
    from ..alerts.telegram import TelegramAlerts

logger = logging.getLogger(__name__)


class MonitorService:
    """
    Periodic driver for Monitor.run().

    Alerts are handed to the dispatcher one by one; a failed delivery is
    logged and does not block the others.
    """

    def __init__(
        self,
        monitor: Monitor,
        alerts: Optional["TelegramAlerts"] = None,
        interval_seconds: float = DEFAULT_MONITOR_INTERVAL_SEC,
    ):
        """
        Initialize the monitor service.

        Args:
            monitor: Monitor to run each tick
            alerts: Alert dispatcher (None = log alerts only)
            interval_seconds: Time between ticks
        """
        self.monitor = monitor
        self.alerts = alerts
        self.interval = interval_seconds
        self.running = False
        self._stop_event: Optional[asyncio.Event] = None

    async def tick(self) -> List[Alert]:
        """
        Run the monitor once and dispatch its alerts.

        Returns:
            Alerts produced by this run (empty if the run failed)
        """
        try:
            alerts = await self.monitor.run()
        except ValidatorWatchError as e:
            logger.error(f"failed to get alerts: {e}")
            return []
        except Exception:
            logger.exception("failed to get alerts: unexpected error")
            return []

        for alert in alerts:
            await self._dispatch(alert)

        return alerts

    async def _dispatch(self, alert: Alert):
        if self.alerts is None:
            logger.info(f"alert for {alert.account.owner_id}: {alert}")
            return

        try:
            message_id = await asyncio.to_thread(self.alerts.send_alert, alert)
        except Exception:
            logger.exception(f"failed to send message to {alert.account.owner_id}: {alert}")
            return
        if message_id is None:
            logger.error(f"failed to send message to {alert.account.owner_id}: {alert}")

    def _install_signal_handlers(self):
        """Stop gracefully on SIGINT/SIGTERM where the loop supports it."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.stop)
            except (NotImplementedError, RuntimeError):
                # Windows / non-main thread
                pass

    async def run_forever(self, install_signal_handlers: bool = True):
        """
        Tick immediately, then every ``interval`` seconds until stopped.
        """
        self.running = True
        self._stop_event = asyncio.Event()
        if install_signal_handlers:
            self._install_signal_handlers()

        logger.info("=" * 60)
        logger.info("VALIDATOR MONITOR SERVICE STARTING")
        logger.info("=" * 60)
        logger.info(f"Interval: {self.interval}s")
        logger.info(f"Dispatcher: {type(self.alerts).__name__ if self.alerts else 'log only'}")

        try:
            while self.running:
                loop_start = asyncio.get_running_loop().time()

                alerts = await self.tick()
                logger.info(f"tick complete: {len(alerts)} alerts")

                elapsed = asyncio.get_running_loop().time() - loop_start
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=max(0.0, self.interval - elapsed),
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self.running = False
            await self.monitor.close()
            logger.info("VALIDATOR MONITOR SERVICE STOPPED")

    def stop(self):
        """Stop the service after the current tick."""
        logger.info("Shutdown requested, stopping monitor...")
        self.running = False
        if self._stop_event is not None:
            self._stop_event.set()
