"""
Shared fixtures for the tapewave tests.

Images are assembled by hand with struct so that every byte under test
is visible in the fixture.
"""

import struct

import pytest


def make_block(body: bytes) -> bytes:
    """Prefix a block body with its little-endian length."""
    return struct.pack("<H", len(body)) + body


def make_header(
    kind: int,
    name: bytes = b"TEST",
    data_length: int = 0,
    params: bytes = b"\x00\x00\x00\x00",
    checksum: int = 0xAA,
) -> bytes:
    """Build the 18 header bytes that follow a header block's flag."""
    return (
        bytes([kind])
        + name.ljust(10, b" ")
        + struct.pack("<H", data_length)
        + params
        + bytes([checksum])
    )


def make_header_block(*args, **kwargs) -> bytes:
    """Build a complete 19-byte header block with its length prefix."""
    return make_block(b"\x00" + make_header(*args, **kwargs))


def make_data_block(payload: bytes) -> bytes:
    """Build a data block with its length prefix."""
    return make_block(b"\xff" + payload)


@pytest.fixture
def companion_payload() -> bytes:
    return bytes([0x10, 0x20, 0x30, 0x40, 0x50])


@pytest.fixture
def sample_tap_bytes(companion_payload: bytes) -> bytes:
    """
    A two-block image.

    Block 0: program header "HELLO" (autostart 10, 5 data bytes),
             followed by its 5-byte companion payload
    Block 1: data block carrying 01 02 03
    """
    header = make_header_block(
        0x00,
        name=b"HELLO",
        data_length=len(companion_payload),
        params=struct.pack("<HH", 10, 5),
        checksum=0x5A,
    )
    return header + companion_payload + make_data_block(b"\x01\x02\x03")


@pytest.fixture
def sample_tap_file(tmp_path, sample_tap_bytes: bytes):
    path = tmp_path / "sample.tap"
    path.write_bytes(sample_tap_bytes)
    return path
