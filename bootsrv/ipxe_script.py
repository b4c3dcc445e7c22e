"""Builder for iPXE boot scripts and the iPXE settings they reference."""

from __future__ import annotations

ASSET_TAG = "${asset}"  # Unfilled
BOARD_SERIAL = "${board-serial}"  # Server serial number
MANUFACTURER = "${manufacturer}"  # Manufacturer name
MODEL_NUMBER = "${product}"  # Chassis model number
CHASSIS_SERIAL = "${serial}"  # Chassis serial number
UUID = "${uuid}"  # 00000000-0000-0000-0000-${mac}

_HEADER = b"#!ipxe\n\n"


class Script:
    """An iPXE script built up one command at a time.

    Every builder method returns the script itself so calls can be chained.
    """

    def __init__(self) -> None:
        self._buf = bytearray()
        self.reset()

    def _append_line(self, *parts: str) -> Script:
        self._buf += " ".join(parts).encode() + b"\n"
        return self

    def args(self, *args: str) -> Script:
        """Append arguments to the last line of the script."""
        self._buf.pop()
        for arg in args:
            self._buf += b" " + arg.encode()
        self._buf += b"\n"
        return self

    def append_string(self, text: str) -> Script:
        """Append raw script text followed by a newline."""
        self._buf += text.encode() + b"\n"
        return self

    def phone_home(self, typ: str) -> Script:
        """Post a 'device connected to DHCP' event of the given type."""
        self._buf += (
            "\nparams\n"
            "param body Device connected to DHCP system\n"
            f"param type {typ}\n"
            "imgfetch ${tinkerbell}/phone-home##params\n"
            "imgfree\n\n"
        ).encode()
        return self

    def chain(self, uri: str) -> Script:
        """Chainload another iPXE script."""
        return self._append_line("chain --autofree", uri)

    def dhcp(self) -> Script:
        return self._append_line("dhcp")

    def boot(self) -> Script:
        return self._append_line("boot")

    def to_bytes(self) -> bytes:
        return bytes(self._buf)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def initrd(self, uri: str, *args: str) -> Script:
        return self._append_line("initrd", uri, *args)

    def kernel(self, uri: str, *args: str) -> Script:
        return self._append_line("kernel", uri, *args)

    def or_(self, line: str) -> Script:
        """Run ``line`` if the previous command fails."""
        self._buf.pop()
        self._buf += b" || " + line.encode() + b"\n"
        return self

    def reset(self) -> Script:
        """Discard everything but the script header."""
        self._buf[:] = _HEADER
        return self

    def echo(self, message: str) -> Script:
        """Print a message on the console."""
        return self._append_line("echo", message)

    def set(self, name: str, value: str) -> Script:
        return self._append_line("set", name, value)

    def shell(self) -> Script:
        return self._append_line("shell")

    def sleep(self, value: int) -> Script:
        return self._append_line("sleep", str(int(value)))