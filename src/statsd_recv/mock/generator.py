"""
Mock StatsD traffic generator.

Produces fake but realistic metric lines so the receiver can be exercised
without a real application sending to it. Bucket names and value ranges
are loosely modelled on a small web service.
"""

import math
import random
from typing import List


_COUNTERS = ["web.requests", "web.errors", "db.queries", "cache.hits", "cache.misses"]
_GAUGES = ["web.active_connections", "queue.depth", "worker.busy"]
_TIMERS = ["web.response_time", "db.query_time", "cache.lookup_time"]

# Lines a broken or confused client might send
_MALFORMED = [
    b"web.requests",
    b"web.requests:1",
    b"web.requests:one|c",
    b"web.requests:1|x",
    b"web.requests:1|c|0.5",
    b"web.requests:1|c|@2",
]


class MockTraffic:

    def __init__(self, seed: int = 42, error_rate: float = 0.0):
        self._rng = random.Random(seed)
        self._tick = 0
        self.error_rate = error_rate

    def line(self) -> bytes:
        """Generate one metric line (no terminator), advancing the clock."""
        self._tick += 1
        rng = self._rng

        if self.error_rate and rng.random() < self.error_rate:
            return rng.choice(_MALFORMED)

        kind = rng.choice(("c", "c", "g", "ms"))
        if kind == "c":
            bucket = rng.choice(_COUNTERS)
            value = f"{rng.randint(1, 5)}"
        elif kind == "g":
            bucket = rng.choice(_GAUGES)
            # slow sinusoidal load with a bit of noise
            load = 40 + 30 * math.sin(self._tick * 0.05) + rng.gauss(0, 3)
            value = f"{max(0.0, load):.1f}"
        else:
            bucket = rng.choice(_TIMERS)
            value = f"{max(0.1, rng.lognormvariate(3.0, 0.6)):.2f}"

        text = f"{bucket}:{value}|{kind}"
        # high-volume clients sample counters and timers
        if kind != "g" and rng.random() < 0.2:
            text += f"|@{rng.choice((0.1, 0.25, 0.5))}"
        return text.encode("ascii")

    def lines(self, count: int) -> List[bytes]:
        return [self.line() for _ in range(count)]

    def datagram(self, count: int) -> bytes:
        """`count` terminated lines, ready to send as one UDP payload."""
        return b"".join(line + b"\n" for line in self.lines(count))
