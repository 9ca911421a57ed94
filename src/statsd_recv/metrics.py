"""
Core metric definitions for statsd-recv.

One Metric per decoded StatsD line. The type set is fixed to what the
classic StatsD grammar carries: counters, gauges and timers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MetricType(Enum):
    COUNTER = "c"
    GAUGE = "g"
    TIMER = "ms"

    @classmethod
    def from_token(cls, token: bytes) -> Optional["MetricType"]:
        return _BY_TOKEN.get(token)


_BY_TOKEN = {t.value.encode("ascii"): t for t in MetricType}


@dataclass(frozen=True)
class Metric:
    """A single observation decoded from one StatsD line."""

    bucket: str
    value: float
    type: MetricType
    sample_rate: float = 1.0

    def summary(self) -> dict:
        """Return a plain dict for display or JSON output."""
        return {
            "bucket": self.bucket,
            "value": self.value,
            "type": self.type.value,
            "sample_rate": self.sample_rate,
        }
