"""
Measurement aggregator for NetCheck.
Turns a completed probe round into a reported data point.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..core.config import Config, Site
from .probe_client import ProbeClient
from .window import AggregateResult


class Aggregator:
    """Checks one remote site and reports it only if the window completed."""

    def __init__(self, config: Config, sink,
                 probe_factory: Callable[..., ProbeClient] = ProbeClient,
                 now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.config = config
        self.sink = sink
        self.logger = logging.getLogger(__name__)
        self._probe_factory = probe_factory
        self._now = now

    def check_site(self, remote: Site) -> Optional[AggregateResult]:
        local = self.config.local_site
        probe = self._probe_factory(local, remote, self.config.port)

        window = probe.run()
        if window is None or not window.complete:
            return None

        result = AggregateResult.from_window(local, remote, window, self._now())
        self.logger.debug(
            f"[{remote}] RTT is {result.average_us} microsec, "
            f"Jitter is {result.jitter_us} microsec"
        )
        self.sink.write(result)
        return result
