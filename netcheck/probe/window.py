"""
Measurement window and aggregate result.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from ..core.config import Site
from ..protocol import truncating_div

WINDOW_SIZE = 10


class MeasurementWindow:
    """Running min/max/sum over a fixed number of RTT samples (microseconds).

    A zero RTT is never taken as the minimum: the minimum is the smallest
    non-zero RTT seen, and stays unset until one arrives.
    """

    def __init__(self, size: int = WINDOW_SIZE):
        if size <= 0:
            raise ValueError(f"Window size must be positive, got {size}")
        self.size = size
        self.count = 0
        self.total = 0
        self._minimum: Optional[int] = None
        self._maximum: Optional[int] = None

    def add(self, rtt_us: int) -> None:
        if self.complete:
            raise ValueError(f"Window already holds {self.size} samples")

        if rtt_us != 0 and (self._minimum is None or rtt_us < self._minimum):
            self._minimum = rtt_us
        if self._maximum is None or rtt_us > self._maximum:
            self._maximum = rtt_us
        self.total += rtt_us
        self.count += 1

    @property
    def complete(self) -> bool:
        return self.count == self.size

    @property
    def minimum(self) -> int:
        return self._minimum if self._minimum is not None else 0

    @property
    def maximum(self) -> int:
        return self._maximum if self._maximum is not None else 0

    @property
    def average(self) -> int:
        self._require_complete()
        return truncating_div(self.total, self.size)

    @property
    def jitter(self) -> int:
        self._require_complete()
        return self.maximum - self.minimum

    def _require_complete(self) -> None:
        if not self.complete:
            raise ValueError(f"Window incomplete: {self.count}/{self.size} samples")


@dataclass(frozen=True)
class AggregateResult:
    """Average RTT and jitter for one (local, remote) pair over one window."""
    local: Site
    remote: Site
    average_us: int
    jitter_us: int
    captured_at: datetime

    @classmethod
    def from_window(cls, local: Site, remote: Site, window: MeasurementWindow,
                    captured_at: datetime) -> 'AggregateResult':
        return cls(
            local=local,
            remote=remote,
            average_us=window.average,
            jitter_us=window.jitter,
            captured_at=captured_at
        )

    def tags(self) -> Dict[str, str]:
        return {
            'region1': self.local.region,
            'region2': self.remote.region,
            'site1': self.local.site,
            'site2': self.remote.site,
        }

    def fields(self) -> Dict[str, int]:
        return {'avg': self.average_us, 'jitter': self.jitter_us}
