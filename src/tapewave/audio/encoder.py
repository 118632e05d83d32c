"""
Pulse Train Encoder
===================

Turns byte payloads into square-wave sample sequences that a tape input
can read back.

Bit Encoding
------------
Bits are sent least-significant first within each byte. Each bit is a
square wave whose frequency and length depend on its value:

    Bit     Frequency   Duration
    ---     ---------   --------
    0       1500 Hz     855 us
    1       3000 Hz     1710 us

The number of samples for a bit is ``duration * sample_rate`` rounded
half up (or truncated, see SampleRounding). Sample ``s`` of a bit is
+1.0 when ``sin(2 * pi * f * s / sample_rate)`` is positive and -1.0
otherwise. The phase restarts at every bit, which leaves a small step at
bit boundaries; the tape input tolerates it.

Additional Waveforms
--------------------
``pure_tone()``, ``pulse_sequence()`` and ``silence()`` build the simpler
waveforms used by pilot tones and raw pulse blocks. They are not used by
``encode()``.

Example
-------
    >>> from tapewave.audio import PulseEncoder
    >>> samples = PulseEncoder().encode(b"\\x01")
    >>> len(samples)
    341
"""

from typing import Iterable, Optional, Union
import logging

import numpy as np

from tapewave.config import PulseTiming
from tapewave.tap.records import Block

logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.float32


def _empty() -> np.ndarray:
    return np.zeros(0, dtype=SAMPLE_DTYPE)


class PulseEncoder:
    """
    Square-wave encoder for byte payloads.

    The encoder is stateless apart from its timing; encoding the same
    payload twice gives identical samples. Each bit value's waveform is
    built once and reused.

    Args:
        timing: Protocol timing and sample rate (default: PulseTiming())
    """

    def __init__(self, timing: Optional[PulseTiming] = None):
        self.timing = timing or PulseTiming()
        self._bit_waves = (self._bit_wave(0), self._bit_wave(1))

    @property
    def sample_rate(self) -> int:
        return self.timing.sample_rate

    def _bit_wave(self, bit: int) -> np.ndarray:
        """Samples for one bit of the given value."""
        frequency, duration_us = self.timing.bit_timing(bit)
        count = self.timing.samples_for(duration_us)
        s = np.arange(count, dtype=np.float64)
        phase = np.sin(2.0 * np.pi * frequency * s / self.sample_rate)
        return np.where(phase > 0.0, 1.0, -1.0).astype(SAMPLE_DTYPE)

    def bit_sample_count(self, bit: int) -> int:
        """Number of samples one bit of the given value occupies."""
        return len(self._bit_waves[1 if bit else 0])

    def encoded_length(self, payload: bytes) -> int:
        """Number of samples ``encode(payload)`` will return."""
        ones = sum(bin(byte).count("1") for byte in payload)
        zeros = len(payload) * 8 - ones
        return ones * self.bit_sample_count(1) + zeros * self.bit_sample_count(0)

    def encode(self, payload: bytes) -> np.ndarray:
        """
        Encode a payload as a square-wave pulse train.

        Args:
            payload: Bytes to encode

        Returns:
            float32 array of +1.0 / -1.0 samples (empty for an empty payload)
        """
        if not payload:
            return _empty()

        data = np.frombuffer(bytes(payload), dtype=np.uint8)
        # bits[i, k] is bit k of byte i, least significant first
        bits = np.unpackbits(data[:, np.newaxis], axis=1, bitorder="little").ravel()
        samples = np.concatenate([self._bit_waves[bit] for bit in bits])
        logger.debug(f"Encoded {len(payload)} bytes into {len(samples)} samples")
        return samples

    # =========================================================================
    # Additional Waveforms
    # =========================================================================

    def silence(self, duration_ms: float) -> np.ndarray:
        """Zero samples covering ``duration_ms``."""
        count = int(duration_ms * self.sample_rate / 1000)
        return np.zeros(count, dtype=SAMPLE_DTYPE)

    def pure_tone(self, duration_ms: float, frequency: float) -> np.ndarray:
        """
        Square wave of fixed frequency built from whole half periods.

        Each half period is ``sample_rate // (2 * frequency)`` samples of
        +1.0 followed by the same number of -1.0; samples left over at the
        end of the duration are filled with +1.0.

        Args:
            duration_ms: Tone length in milliseconds
            frequency: Tone frequency in Hz

        Raises:
            ValueError: If the frequency is too high for the sample rate
        """
        count = int(duration_ms * self.sample_rate / 1000)
        half = int(self.sample_rate // (2 * frequency))
        if half <= 0:
            raise ValueError(
                f"frequency {frequency} Hz is above half the sample rate ({self.sample_rate} Hz)"
            )

        period = np.concatenate([np.ones(half), -np.ones(half)]).astype(SAMPLE_DTYPE)
        full_periods = count // len(period)
        remainder = count - full_periods * len(period)
        return np.concatenate([
            np.tile(period, full_periods),
            np.ones(remainder, dtype=SAMPLE_DTYPE),
        ])

    def pulse_sequence(
        self, durations_ms: Iterable[float], frequency: float, gap_ms: float = 5.0
    ) -> np.ndarray:
        """
        Series of tone pulses separated by silence.

        Args:
            durations_ms: Length of each pulse in milliseconds
            frequency: Tone frequency of every pulse in Hz
            gap_ms: Silence after each pulse in milliseconds
        """
        parts = []
        gap = self.silence(gap_ms)
        for duration in durations_ms:
            parts.append(self.pure_tone(duration, frequency))
            parts.append(gap)
        if not parts:
            return _empty()
        return np.concatenate(parts)


# =============================================================================
# Block Helpers
# =============================================================================

def encode_block_audio(block: Block, timing: Union[PulseTiming, int, None] = None) -> np.ndarray:
    """
    Encode the payload of a block.

    Args:
        block: A parsed block
        timing: A PulseTiming, or a sample rate in Hz

    Returns:
        The block's pulse train, or an empty array if it has no payload
    """
    if isinstance(timing, int):
        timing = PulseTiming(sample_rate=timing)
    if block.payload is None:
        return _empty()
    return PulseEncoder(timing).encode(block.payload)


def render_blocks(blocks: Iterable[Block], timing: Optional[PulseTiming] = None) -> np.ndarray:
    """
    Encode every payload-carrying block and join them in order.

    Args:
        blocks: Blocks in image order
        timing: Protocol timing and sample rate

    Returns:
        The concatenated pulse trains
    """
    encoder = PulseEncoder(timing)
    parts = [encoder.encode(block.payload) for block in blocks if block.payload]
    if not parts:
        return _empty()
    return np.concatenate(parts)


def to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Scale float samples in [-1.0, 1.0] to signed 16-bit PCM."""
    return np.clip(np.round(samples * 32767.0), -32768, 32767).astype(np.int16)
