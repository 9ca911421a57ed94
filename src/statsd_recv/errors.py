"""
Error types for statsd-recv.

BindError and ReceiveLoopError reach whoever started the receiver.
DecodeError and its subclasses never leave the line they were raised for:
the receiver logs them and moves on to the next line.
"""

from __future__ import annotations


class StatsdRecvError(Exception):
    """Base class for everything this package raises."""


class BindError(StatsdRecvError):

    def __init__(self, address: str, reason: str):
        super().__init__(f"cannot listen on {address!r}: {reason}")
        self.address = address
        self.reason = reason


class ReceiveLoopError(StatsdRecvError):
    """The receive loop ended. The close reason is chained as __cause__."""


class DecodeError(StatsdRecvError, ValueError):
    """A single line could not be decoded into a Metric."""


class MissingDelimiter(DecodeError):

    def __init__(self, field: str):
        super().__init__(f"error parsing metric {field}: missing delimiter")
        self.field = field


class EmptyBucket(DecodeError):

    def __init__(self):
        super().__init__("error parsing metric bucket: empty name")


class InvalidNumber(DecodeError):

    def __init__(self, field: str, text: str):
        super().__init__(f"error converting metric {field}: {text!r} is not a number")
        self.field = field
        self.text = text


class InvalidType(DecodeError):

    def __init__(self, token: str):
        super().__init__(f"invalid metric type: {token!r}")
        self.token = token


class MissingSampleRatePrefix(DecodeError):

    def __init__(self):
        super().__init__("error parsing metric sample rate: no prefix @")


class SampleRateOutOfRange(DecodeError):

    def __init__(self, rate: float):
        super().__init__(f"error converting metric sample rate: {rate} out of range (0, 1]")
        self.rate = rate
