"""
StatsD line parser. No external deps, no I/O.

    <bucket>:<value>|<type>[|@<sample_rate>]

Parsing walks left to right and stops at the first problem, so each
DecodeError subclass points at exactly one part of the line.
"""

from __future__ import annotations

import re
from typing import List

from statsd_recv.errors import (
    EmptyBucket,
    InvalidNumber,
    InvalidType,
    MissingDelimiter,
    MissingSampleRatePrefix,
    SampleRateOutOfRange,
)
from statsd_recv.metrics import Metric, MetricType

# Plain decimal floats plus inf/nan. float() alone would also take
# surrounding whitespace and "1_000", which StatsD clients never send.
_FLOAT_RE = re.compile(
    rb"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _parse_float(raw: bytes, field: str) -> float:
    if not _FLOAT_RE.fullmatch(raw):
        raise InvalidNumber(field, _text(raw))
    return float(raw)


def parse_line(line: bytes) -> Metric:
    """Decode one line (terminator already stripped) into a Metric.

    Raises a DecodeError subclass naming the first part of the line that
    didn't fit the grammar.
    """
    bucket, sep, rest = line.partition(b":")
    if not sep:
        raise MissingDelimiter("bucket")
    if not bucket:
        raise EmptyBucket()

    value_raw, sep, rest = rest.partition(b"|")
    if not sep:
        raise MissingDelimiter("value")
    value = _parse_float(value_raw, "value")

    # The type may be the last field, so a missing second "|" is fine
    type_raw, _, sample_raw = rest.partition(b"|")
    metric_type = MetricType.from_token(type_raw)
    if metric_type is None:
        raise InvalidType(_text(type_raw))

    sample_rate = 1.0
    if sample_raw:
        if not sample_raw.startswith(b"@"):
            raise MissingSampleRatePrefix()
        sample_rate = _parse_float(sample_raw[1:], "sample_rate")
        # written this way round so NaN is rejected too
        if not 0.0 < sample_rate <= 1.0:
            raise SampleRateOutOfRange(sample_rate)

    return Metric(
        bucket=_text(bucket),
        value=value,
        type=metric_type,
        sample_rate=sample_rate,
    )


def split_datagram(payload: bytes) -> List[bytes]:
    """Return the lines of a datagram that are worth decoding.

    Lines end at "\\n". Whatever follows the last terminator is an
    incomplete line and is dropped, as are lines of zero or one byte.
    """
    lines = payload.split(b"\n")[:-1]
    return [line for line in lines if len(line) > 1]
