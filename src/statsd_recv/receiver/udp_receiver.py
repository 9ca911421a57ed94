"""
UDP receiver. Reads datagrams, splits them into lines, decodes each line
and passes every good Metric to the handler.

The read loop itself never decodes anything. Each datagram is copied out
of the shared read buffer and handed to the dispatcher, and each decoded
metric is dispatched again on its own, so handler calls overlap freely
and arrive in no guaranteed order.
"""

from __future__ import annotations

import errno
import logging
import socket
import threading
from typing import Any, Optional, Tuple

from statsd_recv.errors import BindError, DecodeError, ReceiveLoopError
from statsd_recv.protocol.parser import parse_line, split_datagram
from statsd_recv.receiver.base import MetricHandler
from statsd_recv.receiver.dispatch import Dispatcher, ThreadSpawner

log = logging.getLogger(__name__)

# Well-known StatsD port on every interface
DEFAULT_METRICS_ADDR = ":8125"

# Bytes read per datagram. Longer datagrams get truncated by the kernel.
DEFAULT_BUFFER_SIZE = 1024

# How often a blocked read wakes up to check for stop()
DEFAULT_POLL_INTERVAL = 0.5

# Errors that mean the socket is gone rather than one bad read
_FATAL_ERRNOS = {errno.EBADF, errno.ENOTSOCK}


def resolve_address(addr: Optional[str]) -> Tuple[str, int]:
    """Split "host:port" into (host, port). Empty host means all interfaces.

    Accepts ":8125", "127.0.0.1:8125" and "[::1]:8125". A blank addr
    falls back to DEFAULT_METRICS_ADDR.
    """
    addr = addr or DEFAULT_METRICS_ADDR
    host, sep, port_str = addr.rpartition(":")
    if not sep:
        raise BindError(addr, "missing port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port = int(port_str)
    except ValueError:
        raise BindError(addr, f"invalid port {port_str!r}") from None
    if not 0 <= port <= 65535:
        raise BindError(addr, f"port {port} out of range")
    return host, port


class MetricReceiver:
    """Listens for StatsD datagrams and calls handler.handle_metric() per line."""

    def __init__(
        self,
        handler: MetricHandler,
        addr: str = "",
        dispatcher: Optional[Dispatcher] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.addr = addr or DEFAULT_METRICS_ADDR
        self.handler = handler
        self.dispatcher = dispatcher or ThreadSpawner()
        self.buffer_size = buffer_size
        self.poll_interval = poll_interval
        self._sock: Optional[Any] = None
        self._stop = threading.Event()
        self._listening = threading.Event()

    @property
    def listening(self) -> bool:
        return self._listening.is_set()

    def wait_listening(self, timeout: Optional[float] = None) -> bool:
        return self._listening.wait(timeout)

    def listen(self) -> socket.socket:
        """Bind a UDP socket on self.addr. Raises BindError on failure."""
        host, port = resolve_address(self.addr)
        try:
            infos = socket.getaddrinfo(
                host or None, port, socket.AF_UNSPEC, socket.SOCK_DGRAM, 0, socket.AI_PASSIVE,
            )
            family, socktype, proto, _, sockaddr = infos[0]
            sock = socket.socket(family, socktype, proto)
        except OSError as e:
            raise BindError(self.addr, str(e)) from e

        try:
            sock.bind(sockaddr)
        except OSError as e:
            sock.close()
            raise BindError(self.addr, str(e)) from e

        log.info("Listening for metrics on %s", self.addr)
        return sock

    def listen_and_receive(self) -> None:
        """Bind self.addr and run receive() on it. Only ever exits by raising."""
        self.receive(self.listen())

    def receive(self, sock: Any) -> None:
        """Read datagrams from an already-bound socket until it goes away.

        Never returns normally: stop() or a closed socket ends the loop
        with ReceiveLoopError. Any other read error is logged and the
        loop keeps going. The socket is closed on the way out.
        """
        self._stop.clear()
        self._sock = sock
        buf = bytearray(self.buffer_size)

        try:
            try:
                sock.settimeout(self.poll_interval)
            except OSError as e:
                raise ReceiveLoopError(f"socket unusable: {e}") from e
            self._listening.set()

            while True:
                if self._stop.is_set():
                    raise ReceiveLoopError("receiver stopped")
                try:
                    nbytes, addr = sock.recvfrom_into(buf)
                except socket.timeout:
                    continue
                except OSError as e:
                    if self._stop.is_set():
                        raise ReceiveLoopError("receiver stopped") from e
                    if e.errno in _FATAL_ERRNOS:
                        raise ReceiveLoopError(f"socket closed: {e}") from e
                    log.warning("Error reading datagram: %s", e)
                    continue

                # buf is reused by the next read, so the task gets its own copy
                payload = bytes(buf[:nbytes])
                try:
                    self.dispatcher.submit(self._handle_datagram, addr, payload)
                except RuntimeError as e:
                    # e.g. no more threads, or a pool that was already shut down
                    log.warning("Error dispatching datagram from %s: %s", _format_addr(addr), e)
        finally:
            self._listening.clear()
            self._sock = None
            sock.close()

    def stop(self) -> None:
        """Ask a running receive() to exit. Safe to call from any thread.

        Has no lasting effect when no loop is running: the next receive()
        starts fresh.
        """
        self._stop.set()
        sock = self._sock
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass

    def _handle_datagram(self, addr: Any, payload: bytes) -> None:
        for line in split_datagram(payload):
            try:
                metric = parse_line(line)
            except DecodeError as e:
                log.warning("Error parsing line %r from %s: %s", line, _format_addr(addr), e)
                continue
            self.dispatcher.submit(self.handler.handle_metric, metric)


def _format_addr(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        host, port = addr[0], addr[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(addr)
