"""Tests for the StatsD line parser."""

import math

import pytest

from statsd_recv.errors import (
    DecodeError,
    EmptyBucket,
    InvalidNumber,
    InvalidType,
    MissingDelimiter,
    MissingSampleRatePrefix,
    SampleRateOutOfRange,
)
from statsd_recv.metrics import Metric, MetricType
from statsd_recv.protocol.parser import parse_line, split_datagram


def test_parse_counter():
    assert parse_line(b"foo:1|c") == Metric(
        bucket="foo", value=1.0, type=MetricType.COUNTER, sample_rate=1.0,
    )


def test_parse_timer_with_sample_rate():
    assert parse_line(b"foo:3.5|ms|@0.1") == Metric(
        bucket="foo", value=3.5, type=MetricType.TIMER, sample_rate=0.1,
    )


@pytest.mark.parametrize("token,expected", [
    (b"c", MetricType.COUNTER),
    (b"g", MetricType.GAUGE),
    (b"ms", MetricType.TIMER),
])
def test_type_tokens_default_sample_rate(token, expected):
    metric = parse_line(b"api.latency:42|" + token)
    assert metric.type is expected
    assert metric.value == 42.0
    assert metric.sample_rate == 1.0


@pytest.mark.parametrize("rate", [b"1", b"1.0", b"0.5", b"0.001", b"1e-3"])
def test_sample_rate_in_range(rate):
    metric = parse_line(b"foo:1|c|@" + rate)
    assert metric.sample_rate == float(rate)


@pytest.mark.parametrize("rate", [b"0", b"0.0", b"-0.5", b"1.5", b"2", b"inf", b"nan"])
def test_sample_rate_out_of_range(rate):
    with pytest.raises(SampleRateOutOfRange):
        parse_line(b"foo:1|c|@" + rate)


def test_value_accepts_signs_and_exponents():
    assert parse_line(b"temp:-12.5|g").value == -12.5
    assert parse_line(b"temp:+3|g").value == 3.0
    assert parse_line(b"big:1e3|c").value == 1000.0
    assert parse_line(b"half:.5|g").value == 0.5


def test_bucket_keeps_any_characters():
    metric = parse_line(b"web.api/v1 users-count:7|c")
    assert metric.bucket == "web.api/v1 users-count"


def test_trailing_pipe_means_no_sample_rate():
    assert parse_line(b"foo:1|c|").sample_rate == 1.0


def test_missing_colon():
    with pytest.raises(MissingDelimiter) as exc_info:
        parse_line(b"foo1")
    assert exc_info.value.field == "bucket"


def test_missing_pipe_after_value():
    with pytest.raises(MissingDelimiter) as exc_info:
        parse_line(b"foo:1")
    assert exc_info.value.field == "value"


def test_empty_bucket():
    with pytest.raises(EmptyBucket):
        parse_line(b":1|c")


@pytest.mark.parametrize("value", [b"bar", b"", b" 1", b"1 ", b"1_000", b"1.2.3"])
def test_invalid_value(value):
    with pytest.raises(InvalidNumber) as exc_info:
        parse_line(b"foo:" + value + b"|c")
    assert exc_info.value.field == "value"


@pytest.mark.parametrize("token", [b"x", b"", b"h", b"C", b"s"])
def test_invalid_type(token):
    with pytest.raises(InvalidType) as exc_info:
        parse_line(b"foo:1|" + token)
    assert exc_info.value.token == token.decode()


def test_sample_rate_without_prefix():
    with pytest.raises(MissingSampleRatePrefix):
        parse_line(b"foo:1|c|0.5")


@pytest.mark.parametrize("rate", [b"", b"abc", b"0.5x"])
def test_invalid_sample_rate(rate):
    with pytest.raises(InvalidNumber) as exc_info:
        parse_line(b"foo:1|c|@" + rate)
    assert exc_info.value.field == "sample_rate"


def test_type_checked_before_sample_rate():
    with pytest.raises(InvalidType):
        parse_line(b"foo:1|x|@5")


def test_decode_errors_are_value_errors():
    with pytest.raises(ValueError):
        parse_line(b"nonsense")
    assert issubclass(SampleRateOutOfRange, DecodeError)


def test_non_utf8_bucket_is_replaced_not_rejected():
    metric = parse_line(b"bad\xffname:1|c")
    assert metric.bucket == "bad\ufffdname"


def test_parse_is_deterministic():
    line = b"foo:3.5|ms|@0.1"
    assert parse_line(line) == parse_line(line)

    errors = []
    for _ in range(2):
        with pytest.raises(DecodeError) as exc_info:
            parse_line(b"foo:1|c|@1.5")
        errors.append((type(exc_info.value), str(exc_info.value)))
    assert errors[0] == errors[1]


def test_metric_is_immutable():
    metric = parse_line(b"foo:1|c")
    with pytest.raises(AttributeError):
        metric.value = 2.0


def test_split_datagram_two_lines():
    assert split_datagram(b"a:1|c\nb:2|g\n") == [b"a:1|c", b"b:2|g"]


def test_split_datagram_drops_unterminated_tail():
    assert split_datagram(b"a:1|c\nb:2|g") == [b"a:1|c"]
    assert split_datagram(b"a:1|c") == []


def test_split_datagram_skips_short_lines():
    assert split_datagram(b"\n\nx\na:1|c\n\n") == [b"a:1|c"]


def test_split_datagram_empty_payload():
    assert split_datagram(b"") == []


def test_summary_uses_wire_token():
    summary = parse_line(b"foo:250|ms|@0.5").summary()
    assert summary == {"bucket": "foo", "value": 250.0, "type": "ms", "sample_rate": 0.5}


def test_infinite_value_allowed():
    assert math.isinf(parse_line(b"foo:inf|g").value)
