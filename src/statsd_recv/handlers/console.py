"""Handlers that print decoded metrics. Used by the CLI, handy for debugging clients."""

from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timezone
from typing import IO, Optional

from rich.console import Console
from rich.text import Text

from statsd_recv.metrics import Metric, MetricType
from statsd_recv.receiver.base import MetricHandler


_TYPE_STYLE = {
    MetricType.COUNTER: "cyan",
    MetricType.GAUGE: "green",
    MetricType.TIMER: "magenta",
}


def format_metric(metric: Metric) -> Text:
    """One Rich line per metric, coloured by type."""
    style = _TYPE_STYLE.get(metric.type, "white")
    line = Text()
    line.append(f"{metric.type.value:>2} ", style=f"bold {style}")
    line.append(metric.bucket, style="bold")
    line.append(f" = {metric.value:g}")
    if metric.type is MetricType.TIMER:
        line.append("ms", style="dim")
    if metric.sample_rate != 1.0:
        line.append(f"  @{metric.sample_rate:g}", style="dim")
    return line


class ConsoleHandler(MetricHandler):

    def __init__(self, console: Optional[Console] = None, show_time: bool = True):
        self._console = console or Console()
        self._show_time = show_time

    def handle_metric(self, metric: Metric) -> None:
        line = format_metric(metric)
        if self._show_time:
            stamp = Text(datetime.now().strftime("%H:%M:%S "), style="dim")
            line = stamp + line
        # Console serialises writes internally, safe from many threads
        self._console.print(line)


class JsonlHandler(MetricHandler):
    """Non-interactive output: one JSON object per metric per line.

    Meant for piping into jq, log shippers, or tests.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self._stream = stream or sys.stdout
        self._lock = threading.Lock()

    def handle_metric(self, metric: Metric) -> None:
        record = metric.summary()
        record["received_at"] = datetime.now(timezone.utc).isoformat()
        data = json.dumps(record) + "\n"
        with self._lock:
            self._stream.write(data)
            self._stream.flush()
