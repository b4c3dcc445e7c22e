"""IEEE 802 MAC-48 hardware addresses."""

from __future__ import annotations

import re
from dataclasses import dataclass

_EXAMPLE = "00:00:00:00:00:00"
_MAC_TEXT = re.compile(r"[0-9A-Fa-f]{2}([:-])[0-9A-Fa-f]{2}(?:\1[0-9A-Fa-f]{2}){4}")


@dataclass(frozen=True, order=True)
class MACAddr:
    """A six-byte hardware address, printed as lower-case colon-separated hex."""

    octets: bytes = bytes(6)

    def __post_init__(self) -> None:
        octets = bytes(self.octets)
        if len(octets) != 6:
            raise ValueError(f"a MAC-48 address has 6 octets, got {len(octets)}")
        object.__setattr__(self, "octets", octets)

    @classmethod
    def parse(cls, text: str | bytes) -> MACAddr:
        """Parse ``aa:bb:cc:dd:ee:ff`` (or dash-separated) text."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("ascii", errors="replace")
        if len(text) != len(_EXAMPLE):
            raise ValueError(f"expected a 48-bit hardware address, got {text!r}")
        if _MAC_TEXT.fullmatch(text) is None:
            raise ValueError(f"parsing mac address: invalid MAC address {text!r}")
        return cls(bytes.fromhex(text.replace(text[2], "")))

    def __str__(self) -> str:
        return ":".join(f"{octet:02x}" for octet in self.octets)

    def __bytes__(self) -> bytes:
        return self.octets

    def is_zero(self) -> bool:
        return self.octets == ZERO_MAC.octets

    def is_ones(self) -> bool:
        return self.octets == ONES_MAC.octets


ZERO_MAC = MACAddr()
ONES_MAC = MACAddr(b"\xff" * 6)