"""
Base handler interface.

A handler is whatever the embedding application wants done with each
decoded Metric. The receiver calls it once per good line, possibly from
several threads at the same time, in no particular order.
"""

from abc import ABC, abstractmethod
from typing import Callable

from statsd_recv.metrics import Metric


class MetricHandler(ABC):
    """Interface for all metric consumers."""

    @abstractmethod
    def handle_metric(self, metric: Metric) -> None:
        ...


class HandlerFunc(MetricHandler):
    """Lets a plain function act as a MetricHandler."""

    def __init__(self, func: Callable[[Metric], None]):
        self._func = func

    def handle_metric(self, metric: Metric) -> None:
        self._func(metric)
