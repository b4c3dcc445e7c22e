"""UDP syslog receiver that parses and logs incoming messages."""

from __future__ import annotations

import logging
import queue
import socket
import threading
from datetime import datetime, timezone
from typing import Optional, Union

from .syslog_message import Message, Severity

_log = logging.getLogger("bootsrv.syslog")

_BUFFER_SIZE = 1024
_POLL_SECONDS = 0.2

Address = Union[str, tuple]


def _split_address(address: Address) -> tuple[str, int]:
    if isinstance(address, tuple):
        host, port_text = address
    else:
        host, sep, port_text = str(address).rpartition(":")
        if not sep:
            raise ValueError(f"missing port in address {address!r}")
    try:
        port = int(port_text)
    except (TypeError, ValueError):
        raise ValueError(f"invalid port in address {address!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"invalid port in address {address!r}")
    return host or "0.0.0.0", port


class Receiver:
    """Listens for syslog datagrams and logs them from a pool of parser threads."""

    def __init__(self, sock: socket.socket, parsers: int) -> None:
        self._sock = sock
        self._sock.settimeout(_POLL_SECONDS)
        self.address = sock.getsockname()
        self.error: Optional[BaseException] = None
        self._queue: queue.Queue[Optional[Message]] = queue.Queue(maxsize=parsers)
        self._closing = threading.Event()
        self._done = threading.Event()
        self._workers = [
            threading.Thread(target=self._run_parser, name="syslog-parser", daemon=True)
            for _ in range(parsers)
        ]
        self._reader = threading.Thread(target=self._run, name="syslog-reader", daemon=True)

    @classmethod
    def start(cls, address: Address, parsers: int = 1) -> Receiver:
        """Bind a UDP socket on ``host:port`` and start receiving."""
        parsers = max(1, parsers)
        host, port = _split_address(address)
        try:
            infos = socket.getaddrinfo(host, port, socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            raise OSError(f"resolve syslog udp listen address: {exc}") from exc
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind(infos[0][4])
        except OSError as exc:
            sock.close()
            raise OSError(f"listen on syslog udp address: {exc}") from exc
        receiver = cls(sock, parsers)
        for worker in receiver._workers:
            worker.start()
        receiver._reader.start()
        return receiver

    def close(self) -> None:
        """Stop receiving and wait for queued messages to be logged."""
        self._closing.set()
        self._done.wait()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait until the receiver has stopped; return whether it has."""
        return self._done.wait(timeout)

    def __enter__(self) -> Receiver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _run(self) -> None:
        try:
            while not self._closing.is_set():
                try:
                    data, source = self._sock.recvfrom(_BUFFER_SIZE)
                except socket.timeout:
                    continue
                except (BlockingIOError, InterruptedError) as exc:
                    _log.error("error reading udp message: %s", exc)
                    continue
                except OSError as exc:
                    if not self._closing.is_set():
                        self.error = exc
                    return
                self._queue.put(
                    Message(data=data, host=source[0], time=datetime.now(timezone.utc))
                )
        finally:
            self._sock.close()
            for _ in self._workers:
                self._queue.put(None)
            for worker in self._workers:
                worker.join()
            self._done.set()

    def _run_parser(self) -> None:
        while True:
            message = self._queue.get()
            if message is None:
                return
            if message.parse():
                if message.severity() == Severity.DEBUG:
                    _log.debug("%s", message)
                else:
                    _log.info("%s", message)
            else:
                _log.debug("%s", message)