"""
tapewave Configuration
======================

Parser policies and pulse timing. Configuration can come from:
- Default values (defined here)
- Explicit keyword arguments
- Environment variables (``from_env()``)

Pulse timing defaults describe the standard data encoding:

    bit 0: 1500 Hz square wave for 855 us
    bit 1: 3000 Hz square wave for 1710 us

at the conventional 44100 Hz sample rate.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import os

from tapewave.errors import TimingConfigError

logger = logging.getLogger(__name__)


# Legacy readers consumed this many extra bytes after every header block
LEGACY_COMPANION_PADDING = 4

DEFAULT_SAMPLE_RATE = 44100


# =============================================================================
# Policies
# =============================================================================

class ArrayHeaderPolicy(Enum):
    """How to treat an array header whose reserved bytes are not 00 80."""
    STRICT = "strict"       # raise MalformedArrayHeader
    LENIENT = "lenient"     # log a warning and keep the params


class InvalidTagPolicy(Enum):
    """How to treat a block with an unknown flag or header type byte."""
    ABORT = "abort"         # propagate the error, stop decoding
    SKIP = "skip"           # log a warning, yield an unsupported block


class SampleRounding(Enum):
    """How a bit duration is turned into a whole number of samples."""
    ROUND = "round"         # round half up
    TRUNCATE = "truncate"   # drop the fraction


# =============================================================================
# Parser Configuration
# =============================================================================

@dataclass(frozen=True)
class ParserConfig:
    """
    Options for the block parser.

    Attributes:
        array_header_policy: Strict or lenient array header checking
            (default: LENIENT)
        on_invalid_tag: Abort or skip on an unknown flag/header type byte
            (default: ABORT)
        companion_padding: Extra bytes read after a header block on top of
            the header's declared data length (default: 0; use
            LEGACY_COMPANION_PADDING for legacy readers)
    """

    array_header_policy: ArrayHeaderPolicy = ArrayHeaderPolicy.LENIENT
    on_invalid_tag: InvalidTagPolicy = InvalidTagPolicy.ABORT
    companion_padding: int = 0

    def __post_init__(self) -> None:
        if self.companion_padding < 0:
            raise ValueError(f"companion_padding must be >= 0, got {self.companion_padding}")

    @classmethod
    def from_env(cls) -> "ParserConfig":
        """
        Create a ParserConfig from environment variables.

        Environment variables (all optional):
            TAPEWAVE_ARRAY_POLICY: "strict" or "lenient"
            TAPEWAVE_INVALID_TAG: "abort" or "skip"
            TAPEWAVE_COMPANION_PADDING: Non-negative integer
        """
        kwargs = {}

        if policy := os.environ.get("TAPEWAVE_ARRAY_POLICY"):
            try:
                kwargs["array_header_policy"] = ArrayHeaderPolicy(policy.lower())
            except ValueError:
                logger.debug(f"Ignoring TAPEWAVE_ARRAY_POLICY={policy!r}")

        if tag_policy := os.environ.get("TAPEWAVE_INVALID_TAG"):
            try:
                kwargs["on_invalid_tag"] = InvalidTagPolicy(tag_policy.lower())
            except ValueError:
                logger.debug(f"Ignoring TAPEWAVE_INVALID_TAG={tag_policy!r}")

        if padding := os.environ.get("TAPEWAVE_COMPANION_PADDING"):
            try:
                value = int(padding)
                if value >= 0:
                    kwargs["companion_padding"] = value
            except ValueError:
                logger.debug(f"Ignoring TAPEWAVE_COMPANION_PADDING={padding!r}")

        return cls(**kwargs)


# =============================================================================
# Pulse Timing
# =============================================================================

@dataclass(frozen=True)
class PulseTiming:
    """
    Protocol timing for the pulse encoder.

    Attributes:
        sample_rate: Output sample rate in Hz (default: 44100)
        zero_frequency: Square wave frequency for a 0 bit in Hz
        one_frequency: Square wave frequency for a 1 bit in Hz
        zero_duration_us: Length of a 0 bit in microseconds
        one_duration_us: Length of a 1 bit in microseconds
        rounding: Sample count rounding (default: ROUND)

    Raises:
        TimingConfigError: If any rate, frequency or duration is not positive
    """

    sample_rate: int = DEFAULT_SAMPLE_RATE
    zero_frequency: float = 1500.0
    one_frequency: float = 3000.0
    zero_duration_us: float = 855.0
    one_duration_us: float = 1710.0
    rounding: SampleRounding = SampleRounding.ROUND

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise TimingConfigError(f"sample rate must be positive, got {self.sample_rate}")
        for name in ("zero_frequency", "one_frequency", "zero_duration_us", "one_duration_us"):
            value = getattr(self, name)
            if value <= 0:
                raise TimingConfigError(f"{name} must be positive, got {value}")

    @classmethod
    def from_env(cls) -> "PulseTiming":
        """
        Create a PulseTiming from environment variables.

        Environment variables (all optional):
            TAPEWAVE_SAMPLE_RATE: Positive integer sample rate in Hz
        """
        if rate := os.environ.get("TAPEWAVE_SAMPLE_RATE"):
            try:
                value = int(rate)
                if value > 0:
                    return cls(sample_rate=value)
            except ValueError:
                pass
            logger.debug(f"Ignoring TAPEWAVE_SAMPLE_RATE={rate!r}")
        return cls()

    def samples_for(self, duration_us: float) -> int:
        """Number of samples covering ``duration_us`` at this sample rate."""
        exact = duration_us * self.sample_rate / 1_000_000
        if self.rounding is SampleRounding.TRUNCATE:
            return int(exact)
        return int(exact + 0.5)

    def bit_timing(self, bit: int) -> tuple[float, float]:
        """Return ``(frequency, duration_us)`` for a single bit value."""
        if bit:
            return self.one_frequency, self.one_duration_us
        return self.zero_frequency, self.zero_duration_us
