"""
Tape Image Record Definitions
=============================

This module defines the data structures recovered from a ``.tap`` tape
image: block flags, header kinds, the kind-specific header parameters,
headers and blocks.

Container Layout
----------------
A tape image is a plain sequence of blocks:

    Offset  Size    Description
    ------  ----    -----------
    0       2       Block length N (little-endian), excluding these 2 bytes
    2       1       Flag byte: 0x00 = header block, 0xFF = data block
    3       N-1     Block body

Header Block Body
-----------------
A header block is always 19 bytes long (flag + 17 header bytes + checksum):

    Offset  Size    Description
    ------  ----    -----------
    0       1       Header type (0 program, 1 number array,
                    2 character array, 3 bytes)
    1       10      Filename, space padded
    11      2       Length of the data that follows (little-endian)
    13      4       Parameters, depending on the header type
    17      1       Checksum (carried, not verified)

Parameter Layouts
-----------------
- Program: autostart line (u16 LE), program length (u16 LE)
- Number/character array: reserved (u8), variable name (u8),
  reserved (2 bytes, normally 00 80)
- Bytes: start address (u16 LE), reserved (2 bytes)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Union
import struct


# Block length of a header block (flag + 17 header bytes + checksum)
HEADER_BLOCK_LENGTH = 0x13

# Header bytes after the flag: type + filename + length + params + checksum
HEADER_SIZE = 18

FILENAME_SIZE = 10

# Trailing reserved bytes of a well-formed array header
ARRAY_RESERVED2 = b"\x00\x80"


# =============================================================================
# Enumeration Types
# =============================================================================

class BlockFlag(IntEnum):
    """Flag byte at the start of every block body."""
    HEADER = 0x00
    DATA = 0xFF

    @classmethod
    def from_byte(cls, value: int) -> Optional["BlockFlag"]:
        """Map a flag byte to a BlockFlag, or None if it is not reserved."""
        try:
            return cls(value)
        except ValueError:
            return None


class HeaderKind(IntEnum):
    """Type byte at the start of a header."""
    PROGRAM = 0x00
    NUM_ARRAY = 0x01
    CHAR_ARRAY = 0x02
    BYTES = 0x03

    @classmethod
    def from_byte(cls, value: int) -> Optional["HeaderKind"]:
        """Map a header type byte to a HeaderKind, or None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None

    def get_description(self) -> str:
        """Get a human-readable name for this header kind."""
        descriptions = {
            HeaderKind.PROGRAM: "Program",
            HeaderKind.NUM_ARRAY: "Number array",
            HeaderKind.CHAR_ARRAY: "Character array",
            HeaderKind.BYTES: "Bytes",
        }
        return descriptions[self]

    @property
    def is_array(self) -> bool:
        return self in (HeaderKind.NUM_ARRAY, HeaderKind.CHAR_ARRAY)


# =============================================================================
# Header Parameters
# =============================================================================

@dataclass(frozen=True)
class ProgramParams:
    """Parameters of a program header."""
    autostart_line: int
    program_length: int

    SIZE = 4

    @classmethod
    def from_bytes(cls, data: bytes) -> "ProgramParams":
        autostart_line, program_length = struct.unpack("<HH", data)
        return cls(autostart_line=autostart_line, program_length=program_length)

    def to_bytes(self) -> bytes:
        return struct.pack("<HH", self.autostart_line, self.program_length)

    @property
    def has_autostart(self) -> bool:
        """Programs saved without LINE carry an autostart line >= 32768."""
        return self.autostart_line < 0x8000


@dataclass(frozen=True)
class ArrayParams:
    """Parameters of a number array or character array header."""
    reserved: int
    variable_name: int
    reserved2: bytes

    SIZE = 4

    @classmethod
    def from_bytes(cls, data: bytes) -> "ArrayParams":
        return cls(reserved=data[0], variable_name=data[1], reserved2=bytes(data[2:4]))

    def to_bytes(self) -> bytes:
        return bytes([self.reserved, self.variable_name]) + self.reserved2

    @property
    def is_well_formed(self) -> bool:
        """True when the trailing reserved bytes are the usual 00 80."""
        return self.reserved2 == ARRAY_RESERVED2

    def get_variable_letter(self) -> str:
        """Variable letter, taken from the low 5 bits of the name byte."""
        return chr(0x60 | (self.variable_name & 0x1F))


@dataclass(frozen=True)
class BytesParams:
    """Parameters of a bytes (code) header."""
    start_address: int
    reserved: bytes

    SIZE = 4

    @classmethod
    def from_bytes(cls, data: bytes) -> "BytesParams":
        (start_address,) = struct.unpack("<H", data[0:2])
        return cls(start_address=start_address, reserved=bytes(data[2:4]))

    def to_bytes(self) -> bytes:
        return struct.pack("<H", self.start_address) + self.reserved


HeaderParams = Union[ProgramParams, ArrayParams, BytesParams]

# The params class each header kind decodes into
PARAMS_FOR_KIND = {
    HeaderKind.PROGRAM: ProgramParams,
    HeaderKind.NUM_ARRAY: ArrayParams,
    HeaderKind.CHAR_ARRAY: ArrayParams,
    HeaderKind.BYTES: BytesParams,
}


# =============================================================================
# Header
# =============================================================================

@dataclass(frozen=True)
class Header:
    """
    Decoded header (18 bytes on the wire, following the flag byte).

    Attributes:
        kind: The header type
        filename: The 10 raw filename bytes, not necessarily text
        declared_data_length: Length of the data described by this header
        params: Kind-specific parameters
        checksum: The trailing checksum byte, carried as-is
    """
    kind: HeaderKind
    filename: bytes
    declared_data_length: int
    params: HeaderParams
    checksum: int

    def to_bytes(self) -> bytes:
        """Serialize the header back to its 18 wire bytes."""
        return (
            bytes([self.kind])
            + self.filename
            + struct.pack("<H", self.declared_data_length)
            + self.params.to_bytes()
            + bytes([self.checksum])
        )

    def get_display_name(self) -> str:
        """Filename as text, without trailing padding."""
        return self.filename.decode("latin-1").rstrip(" \x00")


# =============================================================================
# Block
# =============================================================================

@dataclass(frozen=True)
class Block:
    """
    One length-prefixed block of a tape image.

    Header blocks carry a Header and its companion payload; data blocks
    carry their raw payload. Blocks the parser cannot interpret carry
    neither, but keep their body (and any companion bytes stepped over
    in ``trailer``) so that the image can be reproduced.

    Attributes:
        declared_length: Block length from the 2-byte prefix
        flag: The block flag, or None if the body had no readable flag
        header: The decoded header (header blocks only)
        payload: Companion payload or data payload, if any
        offset: Absolute offset of the length prefix in the image
        index: 0-based position of the block in the image
        body: The declared_length raw body bytes
        trailer: Companion bytes consumed after a skipped header block
    """
    declared_length: int
    flag: Optional[BlockFlag]
    header: Optional[Header] = None
    payload: Optional[bytes] = None
    offset: int = 0
    index: int = 0
    body: bytes = field(default=b"", repr=False)
    trailer: bytes = field(default=b"", repr=False)

    @property
    def is_header(self) -> bool:
        return self.header is not None

    @property
    def is_data(self) -> bool:
        return self.header is None and self.payload is not None

    @property
    def is_supported(self) -> bool:
        """False for blocks the parser skipped over."""
        return self.header is not None or self.payload is not None

    def get_type_name(self) -> str:
        """Get a human-readable name for this block."""
        if self.header is not None:
            return self.header.kind.get_description()
        if self.payload is not None:
            return "Data"
        return "Unsupported"

    def get_size(self) -> int:
        """Bytes this block occupies in the image, including the prefix."""
        size = 2 + self.declared_length + len(self.trailer)
        if self.header is not None and self.payload is not None:
            size += len(self.payload)
        return size

    def to_bytes(self) -> bytes:
        """Serialize the block exactly as it appeared in the image."""
        data = struct.pack("<H", self.declared_length) + self.body
        if self.header is not None and self.payload is not None:
            data += self.payload
        return data + self.trailer


class _End:
    """Sentinel returned by the block parser once the image is exhausted."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END = _End()
