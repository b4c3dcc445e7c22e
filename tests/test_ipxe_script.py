import pytest

from bootsrv.ipxe_script import Script

HEADER = b"#!ipxe\n\n"


def test_new_script_has_only_header():
    assert Script().to_bytes() == HEADER


def test_set_or():
    script = Script().set("iface", "eth0").or_("shell")
    assert script.to_bytes() == HEADER + b"set iface eth0 || shell\n"


def test_builder_methods_return_same_script():
    script = Script()
    assert script.dhcp() is script
    assert script.boot().shell() is script


@pytest.mark.parametrize(
    "method, expected",
    [
        ("dhcp", b"dhcp\n"),
        ("boot", b"boot\n"),
        ("shell", b"shell\n"),
    ],
)
def test_simple_commands(method, expected):
    script = getattr(Script(), method)()
    assert script.to_bytes() == HEADER + expected


def test_kernel_and_initrd_with_args():
    script = Script().kernel("http://host/vmlinuz", "console=ttyS0", "quiet")
    script.initrd("http://host/initrd")
    assert script.to_bytes() == (
        HEADER + b"kernel http://host/vmlinuz console=ttyS0 quiet\ninitrd http://host/initrd\n"
    )


def test_args_extend_last_line():
    script = Script().kernel("vmlinuz").args("a=1", "b=2")
    assert script.to_bytes() == HEADER + b"kernel vmlinuz a=1 b=2\n"


def test_chain_echo_sleep():
    script = Script().chain("http://host/next.ipxe").echo("hello").sleep(5)
    assert script.to_bytes() == (
        HEADER + b"chain --autofree http://host/next.ipxe\necho hello\nsleep 5\n"
    )


def test_append_string():
    script = Script().append_string("goto start")
    assert script.to_bytes() == HEADER + b"goto start\n"


def test_phone_home_mentions_type():
    text = Script().phone_home("provisioning.104.01").to_bytes()
    assert text.startswith(HEADER + b"\nparams\n")
    assert b"param type provisioning.104.01\n" in text
    assert text.endswith(b"imgfree\n\n")


def test_reset_discards_commands():
    script = Script().dhcp().boot()
    assert script.reset().to_bytes() == HEADER


def test_bytes_protocol():
    script = Script().shell()
    assert bytes(script) == script.to_bytes()