"""
Pulse Train Synthesis
=====================

Re-synthesizes tape payloads as square-wave audio.

This module provides:
- **PulseEncoder**: Encode byte payloads bit by bit, plus pure tones and
  pulse sequences
- **encode_block_audio / render_blocks**: Encode parsed blocks
- **write_wav**: Save rendered samples as a WAV file

Quick Start
-----------
    >>> from tapewave.tap import parse_tap_file
    >>> from tapewave.audio import render_blocks, write_wav
    >>> image = parse_tap_file("game.tap")
    >>> samples = render_blocks(image.blocks)
    >>> write_wav("game.wav", samples, 44100)
"""

from tapewave.audio.encoder import (
    PulseEncoder,
    SAMPLE_DTYPE,
    encode_block_audio,
    render_blocks,
    to_pcm16,
)
from tapewave.audio.wav import write_wav

__all__ = [
    "PulseEncoder",
    "SAMPLE_DTYPE",
    "encode_block_audio",
    "render_blocks",
    "to_pcm16",
    "write_wav",
]
