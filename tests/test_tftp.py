import errno
import logging

import pytest

from bootsrv.mac import MACAddr
from bootsrv.tftp import BOOT_FILES, Transfer, open_transfer

MAC = MACAddr.parse("02:00:00:00:00:01")
CONTENT = bytes(range(256)) * 5
FILES = {name: CONTENT + name.encode() for name in BOOT_FILES}


def test_chunked_reads_return_whole_file():
    transfer = open_transfer(MAC, "ipxe.efi", "10.0.0.9:69", FILES)
    chunks = []
    while True:
        chunk = transfer.read(512)
        if not chunk:
            break
        assert len(chunk) <= 512
        chunks.append(chunk)
    assert b"".join(chunks) == FILES["ipxe.efi"]
    assert transfer.size() == 0


def test_size_decreases_with_reads():
    transfer = open_transfer(MAC, "undionly.kpxe", "client", FILES)
    total = transfer.size()
    assert total == len(FILES["undionly.kpxe"])
    transfer.read(100)
    assert transfer.size() == total - 100


def test_read_zero_leaves_transfer_unchanged():
    transfer = open_transfer(MAC, "snp-hua.efi", "client", FILES)
    before = transfer.size()
    assert transfer.read(0) == b""
    assert transfer.size() == before


def test_read_without_size_returns_rest():
    transfer = open_transfer(MAC, "snp-nolacp.efi", "client", FILES)
    first = transfer.read(10)
    rest = transfer.read()
    assert first + rest == FILES["snp-nolacp.efi"]
    assert transfer.read() == b""


def test_unknown_file_raises():
    with pytest.raises(FileNotFoundError) as info:
        open_transfer(MAC, "missing.bin", "client", FILES)
    assert info.value.errno == errno.ENOENT
    assert info.value.filename == "missing.bin"


def test_no_files_means_nothing_to_serve():
    with pytest.raises(FileNotFoundError):
        open_transfer(MAC, "ipxe.efi", "client")


def test_close_drops_unread_content():
    transfer = open_transfer(MAC, "ipxe.efi", "client", FILES)
    transfer.read(3)
    transfer.close()
    assert transfer.size() == 0
    assert transfer.read(10) == b""


def test_context_manager_closes():
    with Transfer(b"abcdef", mac=MAC, client="client", filename="x") as transfer:
        assert transfer.read(4) == b"abcd"
    assert transfer.size() == 0


def test_open_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="bootsrv.tftp"):
        open_transfer(MAC, "ipxe.efi", "client", FILES)
    assert any("event=open" in r.getMessage() and str(MAC) in r.getMessage() for r in caplog.records)