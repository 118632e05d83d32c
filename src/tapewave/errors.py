"""
tapewave Error Hierarchy
========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from TapeError, allowing callers to catch every
tapewave error with a single except clause if desired.

Exception Hierarchy
-------------------
TapeError (base)
├── TapeFormatError (tape image structure)
│   ├── UnexpectedEndOfInput - image ends in the middle of a read
│   ├── InvalidFlag - block flag byte is neither 0x00 nor 0xFF
│   ├── InvalidHeaderKind - header type byte is not 0-3
│   └── MalformedArrayHeader - array header reserved bytes are not 00 80
└── TimingConfigError (invalid pulse timing configuration)

Error Location
--------------
Format errors carry the absolute byte offset of the failing read and,
once the block parser has seen them, the index of the enclosing block.
The message is rebuilt from these attributes whenever it is rendered, so
the parser can attach the block index after the error was raised:

    block 3 at offset 0x0041: expected 2 bytes, only 1 available
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class TapeError(Exception):
    """
    Base exception for all tapewave errors.

        try:
            image = parse_tap_file("game.tap")
        except TapeError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Tape Image Exceptions
# =============================================================================

class TapeFormatError(TapeError):
    """
    Invalid tape image structure.

    Attributes:
        message: The error description
        offset: Absolute byte offset where the problem was detected (optional)
        block_index: 0-based index of the block being parsed (optional)
    """

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        block_index: Optional[int] = None,
    ):
        self.message = message
        self.offset = offset
        self.block_index = block_index
        super().__init__(message)

    def __str__(self) -> str:
        parts = []
        if self.block_index is not None:
            parts.append(f"block {self.block_index}")
        if self.offset is not None:
            parts.append(f"at offset 0x{self.offset:04X}")
        if parts:
            return f"{' '.join(parts)}: {self.message}"
        return self.message


class UnexpectedEndOfInput(TapeFormatError):
    """
    The image ended before a read could be satisfied.

    Raised by the byte cursor whenever fewer bytes remain than a read
    requires. A truncated image is never padded; the whole decode is
    aborted because the rest of a sequential container cannot be trusted.
    """

    def __init__(
        self,
        needed: int,
        available: int,
        offset: Optional[int] = None,
        block_index: Optional[int] = None,
    ):
        self.needed = needed
        self.available = available
        super().__init__(
            f"expected {needed} bytes, only {available} available",
            offset=offset,
            block_index=block_index,
        )


class InvalidFlag(TapeFormatError):
    """Block flag byte is not one of the two reserved values."""

    def __init__(
        self,
        value: int,
        offset: Optional[int] = None,
        block_index: Optional[int] = None,
    ):
        self.value = value
        super().__init__(
            f"invalid block flag 0x{value:02X} (expected 0x00 or 0xFF)",
            offset=offset,
            block_index=block_index,
        )


class InvalidHeaderKind(TapeFormatError):
    """Header type byte does not name one of the four header kinds."""

    def __init__(
        self,
        value: int,
        offset: Optional[int] = None,
        block_index: Optional[int] = None,
    ):
        self.value = value
        super().__init__(
            f"invalid header type 0x{value:02X} (expected 0x00-0x03)",
            offset=offset,
            block_index=block_index,
        )


class MalformedArrayHeader(TapeFormatError):
    """
    Array header whose trailing reserved bytes are not 00 80.

    This is a soft anomaly: it is only raised when the parser runs with
    the strict array header policy. The lenient policy logs a warning and
    keeps the decoded parameters.
    """

    def __init__(
        self,
        reserved2: bytes,
        offset: Optional[int] = None,
        block_index: Optional[int] = None,
    ):
        self.reserved2 = bytes(reserved2)
        super().__init__(
            f"array header reserved bytes are {self.reserved2.hex(' ')} (expected 00 80)",
            offset=offset,
            block_index=block_index,
        )


# =============================================================================
# Configuration Exceptions
# =============================================================================

class TimingConfigError(TapeError):
    """
    Invalid pulse timing configuration.

    Raised when a PulseTiming is built with a non-positive sample rate,
    frequency or duration.
    """
    pass
