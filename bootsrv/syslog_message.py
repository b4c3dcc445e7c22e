"""Syslog message parsing for RFC 5424 and legacy BSD-style messages."""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntEnum


class Facility(IntEnum):
    KERN = 0
    USER = 1
    MAIL = 2
    DAEMON = 3
    AUTH = 4
    SYSLOG = 5
    LPR = 6
    NEWS = 7
    UUCP = 8
    CLOCK = 9
    AUTHPRIV = 10
    FTP = 11
    NTP = 12
    AUDIT = 13
    ALERT = 14
    CRON = 15
    LOCAL0 = 16
    LOCAL1 = 17
    LOCAL2 = 18
    LOCAL3 = 19
    LOCAL4 = 20
    LOCAL5 = 21
    LOCAL6 = 22
    LOCAL7 = 23

    def __str__(self) -> str:
        return self.name.lower()


class Severity(IntEnum):
    EMERG = 0
    ALERT = 1
    CRIT = 2
    ERR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    def __str__(self) -> str:
        return self.name


_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


def _quote(data: bytes) -> str:
    """Double-quote bytes, escaping control characters and invalid UTF-8."""
    out = ['"']
    for ch in data.decode("utf-8", errors="surrogateescape"):
        code = ord(ch)
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif 0xDC80 <= code <= 0xDCFF:
            out.append(f"\\x{code - 0xDC00:02x}")
        elif ch.isprintable():
            out.append(ch)
        elif code < 0x80:
            out.append(f"\\x{code:02x}")
        elif code < 0x10000:
            out.append(f"\\u{code:04x}")
        else:
            out.append(f"\\U{code:08x}")
    out.append('"')
    return "".join(out)


def _text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _ignore_nil(data: bytes) -> bytes | None:
    return None if data == b"-" else data


_RFC3339 = re.compile(
    rb"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:[.,](\d+))?(Z|[+-]\d{2}:\d{2})"
)
_RFC3339_MAX_LEN = len("2006-01-02T15:04:05.999999Z07:00")

_STAMP = re.compile(rb"([A-Za-z]{3}) (?: ?(\d{1,2})) (\d{1,2}):(\d{2}):(\d{2})")
_STAMP_LEN = len("Jan _2 15:04:05")
_MONTHS = {name.lower(): index for index, name in enumerate(calendar.month_abbr) if name}

_TAG_CHARS = frozenset(
    b"0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ-_/."
)


def _parse_rfc3339(data: bytes) -> datetime | None:
    match = _RFC3339.fullmatch(data)
    if match is None:
        return None
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, zone = match.group(7), match.group(8)
    micro = int((fraction or b"0")[:6].ljust(6, b"0"))
    if zone == b"Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[:1] == b"-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        if minutes >= 60:
            return None
        try:
            tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
        except ValueError:
            return None
    try:
        return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)
    except ValueError:
        return None


@dataclass
class Message:
    """One received syslog datagram and the fields parsed out of it."""

    data: bytes
    host: str = ""
    time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    priority: int = 0
    hostname: bytes | None = None
    app: bytes | None = None
    procid: bytes | None = None
    msgid: bytes | None = None
    msg: bytes | None = None

    def __post_init__(self) -> None:
        if self.time.tzinfo is None:
            self.time = self.time.replace(tzinfo=timezone.utc)

    def facility(self) -> Facility | int:
        value = self.priority // 8
        try:
            return Facility(value)
        except ValueError:
            return value

    def severity(self) -> Severity:
        return Severity(self.priority % 8)

    def _facility_label(self) -> str:
        facility = self.facility()
        return str(facility) if isinstance(facility, Facility) else f"facility({facility})"

    def __str__(self) -> str:
        if self.msg is None:
            return f"host={self.host} syslog={_quote(self.data)}"
        fields = []
        if self.hostname is not None:
            fields.append(f"host={_text(self.hostname)}")
        else:
            fields.append(f"host={self.host}")
        fields.append(f"facility={self._facility_label()}")
        fields.append(f"severity={self.severity()}")
        if self.app is not None:
            fields.append(f"app-name={_text(self.app)}")
        if self.procid is not None:
            fields.append(f"procid={_text(self.procid)}")
        if self.msgid is not None:
            fields.append(f"msgid={_text(self.msgid)}")
        fields.append(f"msg={_quote(self.msg.replace(b'\b', b''))}")
        return " ".join(fields)

    def parse(self) -> bool:
        """Parse the raw datagram; return whether it looked like syslog."""
        if not self._parse_priority():
            return False
        if not self._parse_version():
            return self._parse_legacy_header()
        if not self._parse_header():
            return False
        return self._parse_structured_data()

    def reset(self) -> None:
        self.priority = 0
        self.hostname = None
        self.app = None
        self.procid = None
        self.msgid = None
        self.msg = None

    def _parse_priority(self) -> bool:
        data = self.data
        if len(data) < 3 or data[0] != ord("<"):
            return False
        priority = 0
        for i, c in enumerate(data[1:5]):
            if c == ord(">"):
                self.priority = priority
                self.msg = data[2 + i :]
                return True
            if not ord("0") <= c <= ord("9"):
                return False
            priority = (priority * 10 + c - ord("0")) & 0xFF
        return False

    def _parse_version(self) -> bool:
        msg = self.msg
        if len(msg) < 2 or msg[1] != ord(" ") or msg[0] != ord("1"):
            return False
        self.msg = msg[2:]
        return True

    def _parse_header(self) -> bool:
        # TIMESTAMP HOSTNAME APP-NAME PROCID MSGID MSG
        parts = self.msg.split(b" ", 5)
        if len(parts) != 6 or not self._parse_timestamp(parts[0]):
            return False
        self.hostname = _ignore_nil(parts[1])
        self.app = _ignore_nil(parts[2])
        self.procid = _ignore_nil(parts[3])
        self.msgid = _ignore_nil(parts[4])
        self.msg = parts[5]
        return True

    def _parse_timestamp(self, data: bytes) -> bool:
        if _ignore_nil(data) is None:
            return True
        if len(data) > _RFC3339_MAX_LEN:
            return False
        parsed = _parse_rfc3339(data)
        if parsed is None:
            return False
        self.time = parsed
        return True

    def _parse_structured_data(self) -> bool:
        if self.msg.startswith(b"- "):
            self.msg = self.msg[2:]
            return True
        return False

    def _parse_legacy_header(self) -> bool:
        msg = self.msg
        if len(msg) > _STAMP_LEN and msg[_STAMP_LEN] == ord(" "):
            if self._parse_legacy_time(msg[:_STAMP_LEN]):
                self.msg = msg[_STAMP_LEN + 1 :]
        self.hostname = None
        self._parse_legacy_tag()
        self._trim_severity_prefix()
        self._trim_time_prefix()
        self._trim_carriage_return()
        return True

    def _parse_legacy_time(self, stamp: bytes) -> bool:
        match = _STAMP.fullmatch(stamp)
        if match is None:
            return False
        month = _MONTHS.get(match.group(1).decode("ascii").lower())
        day, hour, minute, second = (int(g) for g in match.groups()[1:])
        # Stamps carry no year; validate days against a leap year.
        if month is None or not 1 <= day <= calendar.monthrange(2000, month)[1]:
            return False
        if hour > 23 or minute > 59 or second > 59:
            return False
        self._correct_legacy_time(month, day, hour, minute, second)
        return True

    def _correct_legacy_time(self, month: int, day: int, hour: int, minute: int, second: int) -> None:
        now = self.time
        stamp = datetime(now.year, month, 1, hour, minute, second, tzinfo=timezone.utc)
        stamp += timedelta(days=day - 1)
        hours_off = abs(now - stamp) // timedelta(hours=1)
        if hours_off > 1:
            stamp += timedelta(hours=hours_off)
        self.time = stamp

    def _parse_legacy_tag(self) -> None:
        rest = self.msg
        for i, c in enumerate(rest):
            if c in _TAG_CHARS:
                continue
            self.app, rest = rest[:i], rest[i:]
            if c == ord("["):
                end = rest.find(b"]", 1)
                if end != -1:
                    self.procid = rest[1:end]
                    rest = rest[end + 1 :]
                else:
                    self.procid = None
            self.msg = rest.removeprefix(b": ")
            return
        self.app = None
        self.procid = None

    def _trim_severity_prefix(self) -> None:
        self.msg = self.msg.removeprefix(f"{self.severity()}: ".encode())

    def _trim_time_prefix(self) -> None:
        t = self.time
        prefix = (
            f"{t.year:04d}-{t.month:02d}-{t.day:02d} "
            f"{t.hour:02d}:{t.minute:02d}:{t.second:02d} "
        )
        self.msg = self.msg.removeprefix(prefix.encode())

    def _trim_carriage_return(self) -> None:
        if self.msg.startswith(b"\r"):
            self.msg = self.msg[1:]