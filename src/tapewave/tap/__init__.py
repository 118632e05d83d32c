"""
Tape Image Handling
===================

Readers for ``.tap`` tape images: a sequence of length-prefixed blocks
where each header block describes the program, array or bytes payload
that accompanies it.

This module provides:
- **ByteCursor**: Bounded little-endian reader over bytes or a stream
- **decode_header**: Decode the 18 header bytes of a header block
- **BlockParser / open_tap**: Walk an image one block at a time
- **TapImage**: Parse a whole image and query its contents
- **Record types**: Block, Header and the per-kind parameter classes

Quick Start
-----------
    >>> from tapewave.tap import open_tap
    >>> for block in open_tap("game.tap"):
    ...     if block.header:
    ...         print(block.header.get_display_name())
"""

# =============================================================================
# Public API Exports
# =============================================================================

from tapewave.tap.records import (
    # Enums
    BlockFlag,
    HeaderKind,
    # Data structures
    ProgramParams,
    ArrayParams,
    BytesParams,
    HeaderParams,
    Header,
    Block,
    END,
    # Constants
    HEADER_BLOCK_LENGTH,
    HEADER_SIZE,
    ARRAY_RESERVED2,
)

from tapewave.tap.cursor import ByteCursor

from tapewave.tap.parser import (
    decode_header,
    BlockParser,
    BlockIterator,
    TapImage,
    open_tap,
    parse_tap,
    parse_tap_file,
)

__all__ = [
    # Enums
    "BlockFlag",
    "HeaderKind",
    # Data structures
    "ProgramParams",
    "ArrayParams",
    "BytesParams",
    "HeaderParams",
    "Header",
    "Block",
    "END",
    # Constants
    "HEADER_BLOCK_LENGTH",
    "HEADER_SIZE",
    "ARRAY_RESERVED2",
    # Reader
    "ByteCursor",
    # Parser
    "decode_header",
    "BlockParser",
    "BlockIterator",
    "TapImage",
    "open_tap",
    "parse_tap",
    "parse_tap_file",
]
