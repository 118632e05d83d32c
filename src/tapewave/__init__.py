"""
tapewave - Tape Image Decoder and Pulse Train Synthesizer
=========================================================

This package reads ``.tap`` cassette images recorded from an 8-bit home
computer's tape interface and turns their payloads back into the square
wave audio the machine's tape input expects.

Main Components
---------------
- **tap**: Tape image parsing
    Walks the length-prefixed blocks of an image and decodes program,
    array and bytes headers

- **audio**: Pulse train synthesis
    Encodes payloads bit by bit as square waves and writes WAV files

- **cli**: Command-line tool (taptool)

Quick Start
-----------
List the headers of an image:
    >>> from tapewave.tap import parse_tap_file
    >>> image = parse_tap_file("game.tap")
    >>> for header in image.headers():
    ...     print(header.kind.get_description(), header.get_display_name())

Render an image to audio:
    >>> from tapewave.audio import render_blocks, write_wav
    >>> samples = render_blocks(image.blocks)
    >>> write_wav("game.wav", samples, 44100)

Or use the command-line tool:
    $ taptool list game.tap
    $ taptool render game.tap -o game.wav
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from tapewave.errors import (
    TapeError,
    TapeFormatError,
    UnexpectedEndOfInput,
    InvalidFlag,
    InvalidHeaderKind,
    MalformedArrayHeader,
    TimingConfigError,
)

from tapewave.config import (
    ParserConfig,
    PulseTiming,
    ArrayHeaderPolicy,
    InvalidTagPolicy,
    SampleRounding,
    LEGACY_COMPANION_PADDING,
    DEFAULT_SAMPLE_RATE,
)

from tapewave.tap import (
    BlockFlag,
    HeaderKind,
    ProgramParams,
    ArrayParams,
    BytesParams,
    Header,
    Block,
    END,
    ByteCursor,
    decode_header,
    BlockParser,
    BlockIterator,
    TapImage,
    open_tap,
    parse_tap,
    parse_tap_file,
)

from tapewave.audio import (
    PulseEncoder,
    encode_block_audio,
    render_blocks,
    to_pcm16,
    write_wav,
)

__all__ = [
    "__version__",
    # Exception hierarchy
    "TapeError",
    "TapeFormatError",
    "UnexpectedEndOfInput",
    "InvalidFlag",
    "InvalidHeaderKind",
    "MalformedArrayHeader",
    "TimingConfigError",
    # Configuration
    "ParserConfig",
    "PulseTiming",
    "ArrayHeaderPolicy",
    "InvalidTagPolicy",
    "SampleRounding",
    "LEGACY_COMPANION_PADDING",
    "DEFAULT_SAMPLE_RATE",
    # Tape images
    "BlockFlag",
    "HeaderKind",
    "ProgramParams",
    "ArrayParams",
    "BytesParams",
    "Header",
    "Block",
    "END",
    "ByteCursor",
    "decode_header",
    "BlockParser",
    "BlockIterator",
    "TapImage",
    "open_tap",
    "parse_tap",
    "parse_tap_file",
    # Audio
    "PulseEncoder",
    "encode_block_audio",
    "render_blocks",
    "to_pcm16",
    "write_wav",
]
