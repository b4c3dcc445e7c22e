"""iPXE encapsulated DHCP options (option 175): parsing, building and formatting."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Callable, Mapping, MutableMapping

ENCAPSULATED_OPTIONS = 175  # ipxe-encap-opts

OPTION_PRIORITY = 1
OPTION_KEEP_SAN = 8
OPTION_SKIP_SAN_BOOT = 9
OPTION_SYSLOGS = 85
OPTION_CERTIFICATE = 91
OPTION_PRIVATE_KEY = 92
OPTION_CROSS_CERT = 93
OPTION_NO_PXEDHCP = 176
OPTION_BUS_ID = 177
OPTION_BIOS_DRIVE = 189
OPTION_USERNAME = 190
OPTION_PASSWORD = 191
OPTION_REVERSE_USERNAME = 192
OPTION_REVERSE_PASSWORD = 193
OPTION_INITIATOR_IQN = 203
OPTION_VERSION = 235

FEATURE_PXEXT = 16
FEATURE_ISCSI = 17
FEATURE_AOE = 18
FEATURE_HTTP = 19
FEATURE_HTTPS = 20
FEATURE_TFTP = 21
FEATURE_FTP = 22
FEATURE_DNS = 23
FEATURE_BZIMAGE = 24
FEATURE_MULTIBOOT = 25
FEATURE_SLAM = 26
FEATURE_SRP = 27
FEATURE_NBI = 32
FEATURE_PXE = 33
FEATURE_ELF = 34
FEATURE_COMBOOT = 35
FEATURE_EFI = 36
FEATURE_FCOE = 37
FEATURE_VLAN = 38
FEATURE_MENU = 39
FEATURE_SDI = 40
FEATURE_NFS = 41

# Standard DHCP option codes used here.
DHCP_OPTION_LOG_SERVER = 7
DHCP_OPTION_USER_CLASS = 77

_PAD = 0
_END = 255

PACKET_VERSION = bytes([1, 0, 255])

Options = Mapping[int, bytes]


def _deserialize(data: bytes) -> dict[int, bytes]:
    """Decode a TLV option block; a missing end tag is tolerated."""
    options: dict[int, bytes] = {}
    pos = 0
    while pos < len(data):
        code = data[pos]
        pos += 1
        if code == _PAD:
            continue
        if code == _END:
            break
        if pos >= len(data):
            raise ValueError(f"option {code}: missing length")
        length = data[pos]
        pos += 1
        value = data[pos : pos + length]
        if len(value) < length:
            raise ValueError(f"option {code}: truncated value")
        pos += length
        options[code] = options.get(code, b"") + value
    return options


def parse_options(data: bytes) -> dict[int, bytes] | None:
    """Parse an encapsulated option block, or return None if it is malformed."""
    try:
        return _deserialize(bytes(data))
    except ValueError:
        return None


def serialize_options(options: Options) -> bytes:
    """Encode options in code order, followed by the end tag."""
    out = bytearray()
    for code in sorted(options):
        value = bytes(options[code])
        chunks = [value[i : i + 255] for i in range(0, len(value), 255)] or [b""]
        for chunk in chunks:
            out += bytes([code, len(chunk)]) + chunk
    out.append(_END)
    return bytes(out)


_ENCAP_OPTIONS = serialize_options({OPTION_NO_PXEDHCP: b"\x01"})


def setup(reply_options: MutableMapping[int, bytes], syslog_ip) -> None:
    """Tell iPXE to skip ProxyDHCP waits and to send its syslog to ``syslog_ip``."""
    reply_options[ENCAPSULATED_OPTIONS] = _ENCAP_OPTIONS
    reply_options[DHCP_OPTION_LOG_SERVER] = ipaddress.IPv4Address(syslog_ip).packed


def get_encapsulated_options(options: Options) -> dict[int, bytes] | None:
    """Return the iPXE options a request carries, if it came from iPXE."""
    user_class = options.get(DHCP_OPTION_USER_CLASS)
    if user_class is not None and bytes(user_class) != b"iPXE":
        return None
    encapsulated = options.get(ENCAPSULATED_OPTIONS)
    if encapsulated is None:
        return None
    return parse_options(encapsulated)


def has_feature(options: Options | None, feature: int) -> bool:
    if options is None:
        return False
    value = options.get(feature)
    return value is not None and len(value) == 1 and value[0] == 1


def is_packet_ipxe(options: Options) -> bool:
    """True if the request came from our own iPXE build."""
    encapsulated = get_encapsulated_options(options)
    if encapsulated is None:
        return False
    version = encapsulated.get(OPTION_VERSION)
    return version is not None and bytes(version) == PACKET_VERSION


def is_ipxe(options: Options) -> bool:
    """True if the request came from any iPXE that speaks HTTP."""
    encapsulated = get_encapsulated_options(options)
    return encapsulated is not None and has_feature(encapsulated, FEATURE_HTTP)


def _byte_list(data: bytes) -> str:
    return "[" + " ".join(str(c) for c in data) + "]"


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _format_feature(kind: str, data: bytes) -> str:
    if len(data) != 1:
        return _text(data)
    if kind == "bool" and data[0] == 1:
        return "true"
    return str(data[0])


def _format_option(kind: str, data: bytes) -> str:
    if kind == "hex":
        data = ":".join(format(c, "x") for c in data).encode()
    elif kind in ("bool", "uint8", "int8"):
        if kind == "bool" and data == b"\x01":
            return "true"
        if len(data) == 1:
            return str(data[0])
    return _byte_list(data)


def _format_version(kind: str, data: bytes) -> str:
    if len(data) != 3:
        return _text(data)
    return ".".join(str(c) for c in data)


@dataclass(frozen=True)
class _OptionInfo:
    name: str
    kind: str
    formatter: Callable[[str, bytes], str]

    def render(self, data: bytes) -> str:
        return self.formatter(self.kind, data)


_OPTIONS: dict[int, _OptionInfo] = {
    OPTION_PRIORITY: _OptionInfo("ipxe.priority", "int8", _format_option),
    OPTION_KEEP_SAN: _OptionInfo("ipxe.keep-san", "bool", _format_option),
    OPTION_SKIP_SAN_BOOT: _OptionInfo("ipxe.skip-san-boot", "bool", _format_option),
    OPTION_SYSLOGS: _OptionInfo("ipxe.syslogs", "string", _format_option),
    OPTION_CERTIFICATE: _OptionInfo("ipxe.cert", "hex", _format_option),
    OPTION_PRIVATE_KEY: _OptionInfo("ipxe.privkey", "hex", _format_option),
    OPTION_CROSS_CERT: _OptionInfo("ipxe.crosscert", "hex", _format_option),
    OPTION_NO_PXEDHCP: _OptionInfo("ipxe.no-pxedhcp", "bool", _format_option),
    OPTION_BUS_ID: _OptionInfo("ipxe.bus-id", "hex", _format_option),
    OPTION_BIOS_DRIVE: _OptionInfo("ipxe.bios-drive", "uint8", _format_option),
    OPTION_USERNAME: _OptionInfo("ipxe.username", "string", _format_option),
    OPTION_PASSWORD: _OptionInfo("ipxe.password", "string", _format_option),
    OPTION_REVERSE_USERNAME: _OptionInfo("ipxe.reverse-username", "string", _format_option),
    OPTION_REVERSE_PASSWORD: _OptionInfo("ipxe.reverse-password", "string", _format_option),
    OPTION_VERSION: _OptionInfo("ipxe.version", "string", _format_version),
    OPTION_INITIATOR_IQN: _OptionInfo("iscsi-initiator-iqn", "string", _format_option),
    FEATURE_PXEXT: _OptionInfo("ipxe.pxeext", "uint8", _format_feature),
    FEATURE_ISCSI: _OptionInfo("ipxe.iscsi", "bool", _format_feature),
    FEATURE_AOE: _OptionInfo("ipxe.aoe", "bool", _format_feature),
    FEATURE_HTTP: _OptionInfo("ipxe.http", "bool", _format_feature),
    FEATURE_HTTPS: _OptionInfo("ipxe.https", "bool", _format_feature),
    FEATURE_TFTP: _OptionInfo("ipxe.tftp", "bool", _format_feature),
    FEATURE_FTP: _OptionInfo("ipxe.ftp", "bool", _format_feature),
    FEATURE_DNS: _OptionInfo("ipxe.dns", "bool", _format_feature),
    FEATURE_BZIMAGE: _OptionInfo("ipxe.bzimage", "bool", _format_feature),
    FEATURE_MULTIBOOT: _OptionInfo("ipxe.multiboot", "bool", _format_feature),
    FEATURE_SLAM: _OptionInfo("ipxe.slam", "bool", _format_feature),
    FEATURE_SRP: _OptionInfo("ipxe.srp", "bool", _format_feature),
    FEATURE_NBI: _OptionInfo("ipxe.nbi", "bool", _format_feature),
    FEATURE_PXE: _OptionInfo("ipxe.pxe", "bool", _format_feature),
    FEATURE_ELF: _OptionInfo("ipxe.elf", "bool", _format_feature),
    FEATURE_COMBOOT: _OptionInfo("ipxe.comboot", "bool", _format_feature),
    FEATURE_EFI: _OptionInfo("ipxe.efi", "bool", _format_feature),
    FEATURE_FCOE: _OptionInfo("ipxe.fcoe", "bool", _format_feature),
    FEATURE_VLAN: _OptionInfo("ipxe.vlan", "bool", _format_feature),
    FEATURE_MENU: _OptionInfo("ipxe.menu", "bool", _format_feature),
    FEATURE_SDI: _OptionInfo("ipxe.sdi", "bool", _format_feature),
    FEATURE_NFS: _OptionInfo("ipxe.nfs", "bool", _format_feature),
}


def format_options(options: Options | None) -> dict[str, str] | None:
    """Render iPXE options as readable name/value pairs for logging."""
    if options is None:
        return None
    fields: dict[str, str] = {}
    for code, value in options.items():
        info = _OPTIONS.get(code) or _OptionInfo(f"ipxe.option({code})", "", _format_option)
        fields[info.name] = info.render(bytes(value))
    return fields