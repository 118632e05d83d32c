"""
Tape Image Parser
=================

This module walks a ``.tap`` tape image block by block.

decode_header
-------------
Interprets the 18 header bytes that follow the flag of a header block
and returns a Header with the parameters matching its kind.

BlockParser
-----------
Reads one block per call to ``next()`` and returns a Block, or END once
the image is exhausted on a block boundary. The whole declared body of a
block is read before it is interpreted, so the parser always stays
aligned on the next length prefix, even for blocks it cannot interpret.

TapImage
--------
Parses a complete image up front and offers query helpers.

Usage Examples
--------------
Streaming over blocks:
    >>> from tapewave.tap import open_tap
    >>> for block in open_tap("game.tap"):
    ...     print(block.index, block.get_type_name())

Parsing a whole image:
    >>> from tapewave.tap import parse_tap_file
    >>> image = parse_tap_file("game.tap")
    >>> for header in image.headers():
    ...     print(header.get_display_name())
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union
import logging
import struct

from tapewave.config import ArrayHeaderPolicy, InvalidTagPolicy, ParserConfig
from tapewave.errors import (
    InvalidFlag,
    InvalidHeaderKind,
    MalformedArrayHeader,
    TapeFormatError,
)
from tapewave.tap.cursor import ByteCursor
from tapewave.tap.records import (
    END,
    FILENAME_SIZE,
    HEADER_BLOCK_LENGTH,
    PARAMS_FOR_KIND,
    ArrayParams,
    Block,
    BlockFlag,
    Header,
    HeaderKind,
    _End,
)

# Logger for this module
logger = logging.getLogger(__name__)

TapSource = Union[bytes, bytearray, memoryview, str, Path, BinaryIO]

# Position of the data length field in a header block body (flag, kind, filename)
DATA_LENGTH_OFFSET = 2 + FILENAME_SIZE


# =============================================================================
# Header Decoding
# =============================================================================

def decode_header(cursor: ByteCursor, config: Optional[ParserConfig] = None) -> Header:
    """
    Decode a header from the cursor.

    Reads exactly 18 bytes: type, filename, data length, the 4 parameter
    bytes for the header kind and the checksum. The checksum is returned
    as read; it is not verified.

    Args:
        cursor: Cursor positioned just after the block flag
        config: Parser options (array header policy)

    Returns:
        The decoded Header

    Raises:
        UnexpectedEndOfInput: If the cursor runs out of bytes
        InvalidHeaderKind: If the type byte is not 0-3
        MalformedArrayHeader: If an array header has unusual reserved
            bytes and the array header policy is STRICT
    """
    config = config or ParserConfig()

    kind_offset = cursor.offset
    kind_byte = cursor.read_u8()
    kind = HeaderKind.from_byte(kind_byte)
    if kind is None:
        raise InvalidHeaderKind(kind_byte, offset=kind_offset)

    filename = cursor.read_exact(FILENAME_SIZE)
    declared_data_length = cursor.read_u16_le()

    params_offset = cursor.offset
    params_class = PARAMS_FOR_KIND[kind]
    params = params_class.from_bytes(cursor.read_exact(params_class.SIZE))

    if isinstance(params, ArrayParams) and not params.is_well_formed:
        if config.array_header_policy is ArrayHeaderPolicy.STRICT:
            raise MalformedArrayHeader(params.reserved2, offset=params_offset + 2)
        logger.warning(
            f"Array header at offset 0x{kind_offset:04X} has reserved bytes "
            f"{params.reserved2.hex(' ')} (expected 00 80), continuing"
        )

    checksum = cursor.read_u8()

    return Header(
        kind=kind,
        filename=filename,
        declared_data_length=declared_data_length,
        params=params,
        checksum=checksum,
    )


# =============================================================================
# Block Parser
# =============================================================================

class BlockParser:
    """
    Reads blocks one at a time from a ByteCursor.

    The only state is the cursor position and a running block index used
    to locate errors. ``next()`` returns END when the cursor is exhausted
    exactly at a block boundary; running out of bytes inside a block
    raises UnexpectedEndOfInput.

    Args:
        cursor: Cursor positioned at a block length prefix
        config: Parser options
    """

    def __init__(self, cursor: ByteCursor, config: Optional[ParserConfig] = None):
        self.cursor = cursor
        self.config = config or ParserConfig()
        self._index = 0

    def next(self) -> Union[Block, _End]:
        """
        Parse the next block.

        Returns:
            The next Block, or END if the image is exhausted

        Raises:
            UnexpectedEndOfInput: If the image ends inside a block
            InvalidFlag, InvalidHeaderKind: If a tag byte is unknown and
                the invalid tag policy is ABORT
            MalformedArrayHeader: Under the STRICT array header policy
        """
        if self.cursor.at_end():
            return END

        index = self._index
        offset = self.cursor.offset
        try:
            declared_length = self.cursor.read_u16_le()
            body_offset = self.cursor.offset
            body = self.cursor.read_exact(declared_length)
            block = self._parse_body(declared_length, body, offset, body_offset, index)
        except TapeFormatError as e:
            if e.block_index is None:
                e.block_index = index
            logger.error(f"Failed to parse block: {e}")
            raise

        self._index += 1
        logger.debug(
            f"Block {index} at 0x{offset:04X}: {block.get_type_name()}, "
            f"length {declared_length}"
        )
        return block

    def _parse_body(
        self, declared_length: int, body: bytes, offset: int, body_offset: int, index: int
    ) -> Block:
        """Interpret the body of a block that has already been read in full."""
        if declared_length == 0:
            logger.warning(f"Empty block {index} at offset 0x{offset:04X}")
            return Block(declared_length=0, flag=None, offset=offset, index=index)

        body_cursor = ByteCursor(body, base_offset=body_offset)
        flag_byte = body_cursor.read_u8()
        flag = BlockFlag.from_byte(flag_byte)

        if flag is None:
            return self._reject(
                InvalidFlag(flag_byte, offset=body_offset, block_index=index),
                Block(declared_length=declared_length, flag=None,
                      offset=offset, index=index, body=body),
            )

        # Header block: decode the header, then read its companion payload
        if declared_length == HEADER_BLOCK_LENGTH and flag is BlockFlag.HEADER:
            try:
                header = decode_header(body_cursor, self.config)
            except InvalidHeaderKind as e:
                e.block_index = index
                if self.config.on_invalid_tag is InvalidTagPolicy.ABORT:
                    raise
                # The data length field is intact; step over the companion
                (data_length,) = struct.unpack_from("<H", body, DATA_LENGTH_OFFSET)
                trailer = self.cursor.read_exact(data_length + self.config.companion_padding)
                return self._reject(
                    e,
                    Block(declared_length=declared_length, flag=flag,
                          offset=offset, index=index, body=body, trailer=trailer),
                )
            companion_length = header.declared_data_length + self.config.companion_padding
            payload = self.cursor.read_exact(companion_length)
            return Block(
                declared_length=declared_length,
                flag=flag,
                header=header,
                payload=payload,
                offset=offset,
                index=index,
                body=body,
            )

        # Data block: everything after the flag is payload
        if flag is BlockFlag.DATA:
            payload = body_cursor.read_exact(declared_length - 1)
            return Block(
                declared_length=declared_length,
                flag=flag,
                payload=payload,
                offset=offset,
                index=index,
                body=body,
            )

        logger.warning(
            f"Unsupported block {index} at offset 0x{offset:04X}: "
            f"header flag with length {declared_length}, skipping"
        )
        return Block(declared_length=declared_length, flag=flag,
                     offset=offset, index=index, body=body)

    def _reject(self, error: TapeFormatError, skipped: Block) -> Block:
        """Raise ``error`` or return ``skipped`` per the invalid tag policy."""
        if self.config.on_invalid_tag is InvalidTagPolicy.ABORT:
            raise error
        logger.warning(f"Skipping block: {error}")
        return skipped


class BlockIterator:
    """
    Iterator over the blocks of a tape image.

    ``next()`` mirrors BlockParser and returns END at the end of the
    image; iterating with ``for`` stops at END instead.
    """

    def __init__(self, cursor: ByteCursor, config: Optional[ParserConfig] = None):
        self._parser = BlockParser(cursor, config)
        self._done = False

    def next(self) -> Union[Block, _End]:
        if self._done:
            return END
        block = self._parser.next()
        if block is END:
            self._done = True
        return block

    def __iter__(self) -> Iterator[Block]:
        return self

    def __next__(self) -> Block:
        block = self.next()
        if block is END:
            raise StopIteration
        return block


def open_tap(source: TapSource, config: Optional[ParserConfig] = None) -> BlockIterator:
    """
    Open a tape image for block-by-block reading.

    Args:
        source: Image bytes, a path to an image file, or a readable
            binary stream
        config: Parser options

    Returns:
        A BlockIterator positioned at the first block

    Raises:
        FileNotFoundError: If ``source`` is a path that doesn't exist
    """
    if isinstance(source, (str, Path)):
        source = Path(source).read_bytes()
    return BlockIterator(ByteCursor(source), config)


# =============================================================================
# Whole-Image Parser
# =============================================================================

@dataclass
class TapImage:
    """
    A fully parsed tape image.

    Attributes:
        data: The raw image bytes
        config: Parser options used
        blocks: All blocks, in image order

    Example:
        >>> image = TapImage.from_file("game.tap")
        >>> print(image.get_info()["block_count"])
    """
    # Raw image data (not exposed in repr)
    data: bytes = field(repr=False)

    config: ParserConfig = field(default_factory=ParserConfig)

    blocks: list[Block] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Parse the image data after initialization."""
        self.blocks = list(open_tap(self.data, self.config))
        logger.debug(f"Parsed {len(self.blocks)} blocks from {len(self.data)} bytes")

    @classmethod
    def from_file(cls, filepath: Union[str, Path], config: Optional[ParserConfig] = None) -> "TapImage":
        """
        Create a TapImage from a file path.

        Raises:
            FileNotFoundError: If the file doesn't exist
            TapeFormatError: If the image cannot be parsed
        """
        data = Path(filepath).read_bytes()
        return cls(data=data, config=config or ParserConfig())

    @classmethod
    def from_bytes(cls, data: bytes, config: Optional[ParserConfig] = None) -> "TapImage":
        """Create a TapImage from raw bytes."""
        return cls(data=bytes(data), config=config or ParserConfig())

    # =========================================================================
    # Public Query Methods
    # =========================================================================

    def headers(self) -> list[Header]:
        """All decoded headers, in image order."""
        return [block.header for block in self.blocks if block.header is not None]

    def payload_blocks(self) -> list[Block]:
        """Blocks that carry a payload, in image order."""
        return [block for block in self.blocks if block.payload is not None]

    def unsupported_blocks(self) -> list[Block]:
        """Blocks the parser skipped over."""
        return [block for block in self.blocks if not block.is_supported]

    def get_header(self, name: str) -> Optional[Header]:
        """
        Find a header by filename.

        Args:
            name: Filename without padding (case-sensitive)

        Returns:
            The first matching Header, or None
        """
        for header in self.headers():
            if header.get_display_name() == name:
                return header
        return None

    def get_info(self) -> dict:
        """Get summary information about the image."""
        return {
            "size": len(self.data),
            "block_count": len(self.blocks),
            "header_count": len(self.headers()),
            "data_block_count": sum(1 for block in self.blocks if block.is_data),
            "unsupported_count": len(self.unsupported_blocks()),
            "payload_bytes": sum(len(block.payload) for block in self.payload_blocks()),
        }


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_tap(data: bytes, config: Optional[ParserConfig] = None) -> TapImage:
    """Parse a tape image from bytes."""
    return TapImage.from_bytes(data, config)


def parse_tap_file(filepath: Union[str, Path], config: Optional[ParserConfig] = None) -> TapImage:
    """Parse a tape image from disk."""
    return TapImage.from_file(filepath, config)
