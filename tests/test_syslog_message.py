from datetime import datetime, timedelta, timezone

import pytest

from bootsrv.syslog_message import Facility, Message, Severity

UTC = timezone.utc
RFC5424 = b"<34>1 2003-10-11T22:14:15.003Z mymachine.example.com su - ID47 - 'su root' failed"


def test_rfc5424_fields():
    msg = Message(RFC5424, host="192.0.2.1")
    assert msg.parse() is True
    assert msg.facility() == Facility.AUTH
    assert msg.severity() == Severity.CRIT
    assert msg.hostname == b"mymachine.example.com"
    assert msg.app == b"su"
    assert msg.procid is None
    assert msg.msgid == b"ID47"
    assert msg.msg == b"'su root' failed"
    assert msg.time == datetime(2003, 10, 11, 22, 14, 15, 3000, tzinfo=UTC)


def test_rfc5424_string():
    msg = Message(RFC5424, host="192.0.2.1")
    msg.parse()
    assert str(msg) == (
        "host=mymachine.example.com facility=auth severity=CRIT "
        "app-name=su msgid=ID47 msg=\"'su root' failed\""
    )


def test_rfc5424_requires_nil_structured_data():
    msg = Message(b"<34>1 - host app - - [sd] text")
    assert msg.parse() is False


def test_rfc5424_timestamp_too_long():
    msg = Message(b"<34>1 2003-10-11T22:14:15.0000000000000Z host app - - - text")
    assert msg.parse() is False


def test_facility_out_of_range():
    msg = Message(b"<255>1 - - - - - - hi", host="h")
    assert msg.parse() is True
    assert msg.facility() == 31
    assert msg.severity() == Severity.DEBUG
    assert "facility=facility(31)" in str(msg)


def test_legacy_message():
    now = datetime(2023, 10, 11, 22, 20, tzinfo=UTC)
    msg = Message(b"<13>Oct 11 22:14:15 myapp[123]: hello", host="192.0.2.1", time=now)
    assert msg.parse() is True
    assert msg.facility() == Facility.USER
    assert msg.severity() == Severity.NOTICE
    assert msg.time == datetime(2023, 10, 11, 22, 14, 15, tzinfo=UTC)
    assert msg.hostname is None
    assert msg.app == b"myapp"
    assert msg.procid == b"123"
    assert msg.msg == b"hello"


def test_legacy_time_pulled_within_an_hour():
    now = datetime(2023, 10, 11, 22, 0, tzinfo=UTC)
    msg = Message(b"<13>Oct 11 10:00:00 app: text", time=now)
    assert msg.parse() is True
    assert abs(msg.time - now) < timedelta(hours=1)


def test_legacy_severity_prefix_trimmed():
    msg = Message(b"<14>app: INFO: text")
    assert msg.parse() is True
    assert msg.app == b"app"
    assert msg.msg == b"text"


def test_legacy_carriage_return_trimmed():
    msg = Message(b"<14>app: \rhello")
    assert msg.parse() is True
    assert msg.msg == b"hello"


def test_legacy_without_tag():
    msg = Message(b"<14>plainword")
    assert msg.parse() is True
    assert msg.app is None
    assert msg.procid is None
    assert msg.msg == b"plainword"


@pytest.mark.parametrize("data", [b"hello", b"<1", b"<12345>x", b"<1a>x"])
def test_bad_priority(data):
    assert Message(data).parse() is False


def test_unparsed_string_quotes_raw_bytes():
    msg = Message(b"x\x01\xff", host="h")
    assert msg.parse() is False
    assert str(msg) == 'host=h syslog="x\\x01\\xff"'


def test_reset_clears_parsed_fields():
    msg = Message(RFC5424)
    msg.parse()
    msg.reset()
    assert msg.priority == 0
    assert (msg.hostname, msg.app, msg.procid, msg.msgid, msg.msg) == (None,) * 5
    assert str(msg).startswith("host=")


def test_backspace_removed_in_string():
    msg = Message(b"<14>app: a\bb", host="h")
    msg.parse()
    assert str(msg).endswith('msg="ab"')