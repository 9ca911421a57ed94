"""
statsd-recv entry point.

Usage:
    statsd-recv listen                         Print metrics arriving on :8125
    statsd-recv listen --addr 127.0.0.1:9125 --output jsonl
    statsd-recv mock --addr 127.0.0.1:8125     Send fake traffic for testing
"""

from __future__ import annotations

import logging
import socket
import time

import click

from statsd_recv import __version__
from statsd_recv.errors import BindError, ReceiveLoopError
from statsd_recv.handlers.console import ConsoleHandler, JsonlHandler
from statsd_recv.mock.generator import MockTraffic
from statsd_recv.receiver.dispatch import make_dispatcher
from statsd_recv.receiver.udp_receiver import (
    DEFAULT_BUFFER_SIZE,
    DEFAULT_METRICS_ADDR,
    MetricReceiver,
    resolve_address,
)


log = logging.getLogger("statsd_recv")


@click.group()
@click.version_option(version=__version__, prog_name="statsd-recv")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool):
    """statsd-recv - StatsD UDP receiver."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@cli.command()
@click.option("--addr", default=DEFAULT_METRICS_ADDR, envvar="STATSD_RECV_ADDR", show_default=True,
              help="UDP address to listen on (host:port, empty host = all interfaces)")
@click.option("--output", type=click.Choice(["console", "jsonl"]), default="console",
              help="Output mode: console (Rich) or jsonl (one JSON line per metric)")
@click.option("--workers", default=0, envvar="STATSD_RECV_WORKERS", show_default=True,
              help="Handler threads; 0 starts a fresh thread per task")
@click.option("--buffer-size", default=DEFAULT_BUFFER_SIZE, show_default=True,
              help="Largest datagram read in bytes, longer ones are truncated")
def listen(addr: str, output: str, workers: int, buffer_size: int):
    """Receive metrics and print each one as it's decoded."""
    handler = JsonlHandler() if output == "jsonl" else ConsoleHandler()
    dispatcher = make_dispatcher(workers)
    receiver = MetricReceiver(
        handler=handler,
        addr=addr,
        dispatcher=dispatcher,
        buffer_size=buffer_size,
    )

    try:
        receiver.listen_and_receive()
    except BindError as e:
        raise click.ClickException(str(e))
    except ReceiveLoopError as e:
        log.info("Receiver stopped: %s", e)
    except KeyboardInterrupt:
        receiver.stop()
    finally:
        dispatcher.close(wait=False)


@cli.command()
@click.option("--addr", default="127.0.0.1:8125", show_default=True, help="Receiver address to send to")
@click.option("--count", default=10, show_default=True, help="Number of datagrams to send (0 = forever)")
@click.option("--lines", default=5, show_default=True, help="Metric lines per datagram")
@click.option("--interval", default=1.0, show_default=True, help="Seconds between datagrams")
@click.option("--seed", default=42, show_default=True, help="Random seed for reproducible traffic")
@click.option("--error-rate", default=0.0, show_default=True, help="Fraction of lines sent malformed")
def mock(addr: str, count: int, lines: int, interval: float, seed: int, error_rate: float):
    """Send generated StatsD traffic to a receiver."""
    try:
        host, port = resolve_address(addr)
    except BindError as e:
        raise click.ClickException(str(e))

    traffic = MockTraffic(seed=seed, error_rate=error_rate)
    sent = 0

    try:
        family, socktype, proto, _, target = socket.getaddrinfo(
            host or "127.0.0.1", port, socket.AF_UNSPEC, socket.SOCK_DGRAM,
        )[0]
        with socket.socket(family, socktype, proto) as sock:
            try:
                while count == 0 or sent < count:
                    sock.sendto(traffic.datagram(lines), target)
                    sent += 1
                    log.debug("Sent datagram %d to %s", sent, addr)
                    if interval > 0 and (count == 0 or sent < count):
                        time.sleep(interval)
            except KeyboardInterrupt:
                pass
    except OSError as e:
        raise click.ClickException(f"cannot send to {addr!r}: {e}")

    click.echo(f"Sent {sent} datagrams ({sent * lines} lines) to {addr}")


if __name__ == "__main__":
    cli()
