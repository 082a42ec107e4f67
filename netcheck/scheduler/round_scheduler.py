"""
Round scheduler for NetCheck.
Checks every configured remote site once per period.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from ..core.config import Site


class RoundScheduler:
    """Fires a tick every ``period`` seconds until stopped.

    With no remote sites configured the scheduler idles and never checks
    anything. Within a tick, sites are checked in configuration order, one
    at a time unless ``parallel`` is set.
    """

    def __init__(self, remote_sites: Sequence[Site], aggregator, period: float,
                 parallel: bool = False,
                 monotonic: Callable[[], float] = time.monotonic):
        if period <= 0:
            raise ValueError(f"Period must be positive, got {period}")
        self.remote_sites = tuple(remote_sites)
        self.aggregator = aggregator
        self.period = period
        self.parallel = parallel
        self.logger = logging.getLogger(__name__)

        self._stop_event = threading.Event()
        self._monotonic = monotonic
        self.ticks = 0

    @property
    def idle(self) -> bool:
        return not self.remote_sites

    def run(self) -> None:
        """Block, running ticks, until stop() is called."""
        if self.idle:
            self.logger.info("No remote sites configured, serving echoes only")
            self._stop_event.wait()
            return

        self.logger.info(
            f"Checking {len(self.remote_sites)} remote sites every {self.period}s"
        )
        next_tick = self._monotonic() + self.period
        while not self._stop_event.wait(max(0.0, next_tick - self._monotonic())):
            self.run_tick()

            next_tick += self.period
            now = self._monotonic()
            if next_tick <= now:
                missed = int((now - next_tick) // self.period) + 1
                self.logger.warning(f"Tick overran the period, skipping {missed} ticks")
                next_tick += missed * self.period

    def run_tick(self) -> None:
        """Check every remote site once."""
        self.ticks += 1
        if self.idle:
            return
        if self.parallel:
            with ThreadPoolExecutor(max_workers=len(self.remote_sites),
                                    thread_name_prefix="check") as pool:
                # Consume results so every check has finished when the tick ends
                list(pool.map(self._check, self.remote_sites))
        else:
            for site in self.remote_sites:
                self._check(site)

    def stop(self) -> None:
        self._stop_event.set()

    def _check(self, site: Site) -> None:
        try:
            self.aggregator.check_site(site)
        except Exception:
            self.logger.exception(f"[{site}] Site check failed")
