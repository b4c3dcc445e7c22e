"""Serving iPXE binaries to TFTP clients."""

from __future__ import annotations

import errno
import logging
import time
from collections.abc import Mapping
from typing import Optional

_log = logging.getLogger("bootsrv.tftp")

BOOT_FILES = ("undionly.kpxe", "snp-nolacp.efi", "ipxe.efi", "snp-hua.efi")


def _fields(**values: object) -> str:
    return " ".join(f"{key}={value}" for key, value in values.items())


class Transfer:
    """A read-once transfer of one file's content."""

    def __init__(self, content: bytes, *, mac: object, client: str, filename: str) -> None:
        self._unread = memoryview(bytes(content))
        self._context = _fields(mac=mac, client=client, filename=filename)
        self._start = time.monotonic()

    def read(self, size: int = -1) -> bytes:
        """Return up to ``size`` unread bytes (all if negative); b"" at the end."""
        if size == 0:
            _log.info("%s %s", self._context, _fields(event="read", read=0, unread=self.size()))
            return b""
        if size < 0:
            size = len(self._unread)
        chunk = bytes(self._unread[:size])
        self._unread = self._unread[len(chunk):]
        _log.debug(
            "%s %s", self._context, _fields(event="read", read=len(chunk), unread=self.size())
        )
        return chunk

    def close(self) -> None:
        """Log how the transfer went and drop what was not read."""
        duration = time.monotonic() - self._start
        _log.info(
            "%s %s",
            self._context,
            _fields(event="close", duration=f"{duration:.6f}s", unread=self.size()),
        )
        self._unread = memoryview(b"")

    def size(self) -> int:
        """Number of bytes not yet read."""
        return len(self._unread)

    def __enter__(self) -> Transfer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def open_transfer(
    mac: object, filename: str, client: str, files: Optional[Mapping[str, bytes]] = None
) -> Transfer:
    """Start a transfer of ``filename`` taken from ``files``."""
    files = files or {}
    content = files.get(filename)
    context = _fields(mac=mac, client=client, filename=filename)
    if content is None:
        error = FileNotFoundError(errno.ENOENT, "unknown file", filename)
        _log.info("%s %s", context, _fields(event="open", error=error))
        raise error
    transfer = Transfer(content, mac=mac, client=client, filename=filename)
    _log.debug("%s %s", context, _fields(event="open"))
    return transfer