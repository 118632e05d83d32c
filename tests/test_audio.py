"""
Pulse Encoder Unit Tests
========================

Test Categories
---------------
1. Timing: PulseTiming validation and sample counts
2. Encoder: Bit order, waveform shape and output length
3. Waveforms: Pure tones, pulse sequences and silence
4. Blocks: Encoding parsed blocks in image order
5. WAV: Writing samples to disk
"""

import numpy as np
import pytest
import soundfile as sf

from tapewave.audio import (
    SAMPLE_DTYPE,
    PulseEncoder,
    encode_block_audio,
    render_blocks,
    to_pcm16,
    write_wav,
)
from tapewave.config import PulseTiming, SampleRounding
from tapewave.errors import TimingConfigError
from tapewave.tap import Block, BlockFlag, parse_tap


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def encoder() -> PulseEncoder:
    return PulseEncoder()


# =============================================================================
# Timing Tests
# =============================================================================

class TestPulseTiming:
    """Tests for PulseTiming."""

    def test_defaults(self):
        timing = PulseTiming()
        assert timing.sample_rate == 44100
        assert timing.bit_timing(0) == (1500.0, 855.0)
        assert timing.bit_timing(1) == (3000.0, 1710.0)

    def test_rounded_sample_counts(self):
        timing = PulseTiming()
        assert timing.samples_for(855.0) == 38      # 37.7055
        assert timing.samples_for(1710.0) == 75     # 75.411

    def test_truncated_sample_counts(self):
        timing = PulseTiming(rounding=SampleRounding.TRUNCATE)
        assert timing.samples_for(855.0) == 37
        assert timing.samples_for(1710.0) == 75

    def test_round_half_up(self):
        timing = PulseTiming(sample_rate=1000)
        assert timing.samples_for(2500.0) == 3      # 2.5
        assert timing.samples_for(3500.0) == 4      # 3.5

    @pytest.mark.parametrize("kwargs", [
        {"sample_rate": 0},
        {"sample_rate": -44100},
        {"zero_frequency": 0},
        {"one_duration_us": -1.0},
    ])
    def test_invalid_timing(self, kwargs):
        with pytest.raises(TimingConfigError):
            PulseTiming(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TAPEWAVE_SAMPLE_RATE", "48000")
        assert PulseTiming.from_env().sample_rate == 48000

    def test_from_env_ignores_invalid(self, monkeypatch):
        monkeypatch.setenv("TAPEWAVE_SAMPLE_RATE", "fast")
        assert PulseTiming.from_env().sample_rate == 44100


# =============================================================================
# Encoder Tests
# =============================================================================

class TestPulseEncoder:
    """Tests for PulseEncoder.encode()."""

    def test_single_byte_scenario(self, encoder):
        """0x01 is one 3000 Hz pulse (bit 0) followed by seven 1500 Hz pulses."""
        samples = encoder.encode(b"\x01")
        assert len(samples) == 75 + 7 * 38

        one = encoder.encode(b"\xff")[:75]
        zero = encoder.encode(b"\x00")[:38]
        np.testing.assert_array_equal(samples[:75], one)
        for k in range(7):
            start = 75 + k * 38
            np.testing.assert_array_equal(samples[start:start + 38], zero)

    def test_lsb_first(self, encoder):
        """0x80 puts its single 1 bit last."""
        samples = encoder.encode(b"\x80")
        zero = encoder.encode(b"\x00")[:38]
        np.testing.assert_array_equal(samples[:38], zero)
        assert len(samples) == 7 * 38 + 75

    def test_zero_bit_waveform(self, encoder):
        wave = encoder.encode(b"\x00")[:38]
        # sin(0) is not positive, so every bit starts low
        assert wave[0] == -1.0
        assert np.all(wave[1:15] == 1.0)
        assert wave[15] == -1.0

    def test_one_bit_waveform(self, encoder):
        wave = encoder.encode(b"\xff")[:75]
        assert wave[0] == -1.0
        assert np.all(wave[1:8] == 1.0)
        assert np.all(wave[8:15] == -1.0)
        assert wave[15] == 1.0

    def test_one_bit_has_twice_the_frequency(self, encoder):
        zero = encoder.encode(b"\x00")[:38]
        one = encoder.encode(b"\xff")[:38]
        zero_edges = np.count_nonzero(np.diff(zero))
        one_edges = np.count_nonzero(np.diff(one))
        assert one_edges > zero_edges

    def test_phase_restarts_every_bit(self, encoder):
        samples = encoder.encode(b"\x00")
        for k in range(8):
            assert samples[k * 38] == -1.0
            assert samples[k * 38 + 1] == 1.0

    def test_values_and_dtype(self, encoder):
        samples = encoder.encode(bytes(range(256)))
        assert samples.dtype == SAMPLE_DTYPE
        assert set(np.unique(samples)) <= {-1.0, 1.0}

    def test_empty_payload(self, encoder):
        samples = encoder.encode(b"")
        assert len(samples) == 0
        assert samples.dtype == SAMPLE_DTYPE

    def test_idempotent(self, encoder):
        payload = bytes([0x12, 0x34, 0xAB, 0xCD])
        np.testing.assert_array_equal(encoder.encode(payload), encoder.encode(payload))
        np.testing.assert_array_equal(encoder.encode(payload), PulseEncoder().encode(payload))

    def test_length_depends_on_bit_counts(self, encoder):
        assert len(encoder.encode(b"\x0f")) == len(encoder.encode(b"\xf0"))
        assert len(encoder.encode(b"\x03\x00")) == len(encoder.encode(b"\x00\x30"))

    def test_encoded_length(self, encoder):
        payload = bytes([0x00, 0xFF, 0x5A, 0x01])
        assert encoder.encoded_length(payload) == len(encoder.encode(payload))

    def test_truncated_rounding(self):
        encoder = PulseEncoder(PulseTiming(rounding=SampleRounding.TRUNCATE))
        assert len(encoder.encode(b"\x01")) == 75 + 7 * 37

    @pytest.mark.parametrize("sample_rate", [1, 7, 8000, 11025, 22050, 48000, 96000])
    def test_any_sample_rate(self, sample_rate):
        timing = PulseTiming(sample_rate=sample_rate)
        encoder = PulseEncoder(timing)
        payload = b"\x01\xfe"
        expected = (
            8 * timing.samples_for(timing.one_duration_us)
            + 8 * timing.samples_for(timing.zero_duration_us)
        )
        assert len(encoder.encode(payload)) == expected

    def test_custom_timing(self):
        timing = PulseTiming(sample_rate=1000, zero_duration_us=4000, one_duration_us=2000)
        encoder = PulseEncoder(timing)
        assert encoder.bit_sample_count(0) == 4
        assert encoder.bit_sample_count(1) == 2
        assert len(encoder.encode(b"\x01")) == 2 + 7 * 4


# =============================================================================
# Additional Waveform Tests
# =============================================================================

class TestWaveforms:
    """Tests for pure tones, pulse sequences and silence."""

    def test_silence(self, encoder):
        samples = encoder.silence(10)
        assert len(samples) == 441
        assert not samples.any()

    def test_pure_tone(self, encoder):
        samples = encoder.pure_tone(10, 1500)
        # 441 samples of 28-sample periods: 15 periods, 21 samples left over
        assert len(samples) == 441
        assert np.all(samples[:14] == 1.0)
        assert np.all(samples[14:28] == -1.0)
        assert np.all(samples[420:] == 1.0)

    def test_pure_tone_shorter_than_period(self, encoder):
        samples = encoder.pure_tone(0.5, 100)
        assert len(samples) == 22
        assert np.all(samples == 1.0)

    def test_pure_tone_frequency_too_high(self, encoder):
        with pytest.raises(ValueError):
            encoder.pure_tone(10, 30000)

    def test_pulse_sequence(self, encoder):
        samples = encoder.pulse_sequence([10, 20], 1500, gap_ms=5)
        assert len(samples) == 441 + 220 + 882 + 220
        assert not samples[441:661].any()

    def test_empty_pulse_sequence(self, encoder):
        assert len(encoder.pulse_sequence([], 1500)) == 0


# =============================================================================
# Block Encoding Tests
# =============================================================================

class TestBlockAudio:
    """Tests for encoding parsed blocks."""

    def test_encode_block_audio(self, encoder):
        block = Block(declared_length=3, flag=BlockFlag.DATA, payload=b"\x01\x02")
        np.testing.assert_array_equal(encode_block_audio(block), encoder.encode(b"\x01\x02"))

    def test_encode_block_audio_sample_rate(self):
        block = Block(declared_length=2, flag=BlockFlag.DATA, payload=b"\x00")
        samples = encode_block_audio(block, 8000)
        assert len(samples) == 8 * PulseTiming(sample_rate=8000).samples_for(855.0)

    def test_block_without_payload(self):
        block = Block(declared_length=8, flag=BlockFlag.HEADER)
        assert len(encode_block_audio(block)) == 0

    def test_render_preserves_order(self, encoder, sample_tap_bytes, companion_payload):
        image = parse_tap(sample_tap_bytes)
        samples = render_blocks(image.blocks)
        expected = np.concatenate([
            encoder.encode(companion_payload),
            encoder.encode(b"\x01\x02\x03"),
        ])
        np.testing.assert_array_equal(samples, expected)

    def test_render_nothing(self):
        assert len(render_blocks([])) == 0


# =============================================================================
# Output Tests
# =============================================================================

class TestOutput:
    """Tests for PCM conversion and WAV output."""

    def test_to_pcm16(self):
        pcm = to_pcm16(np.array([1.0, -1.0, 0.0], dtype=np.float32))
        assert pcm.dtype == np.int16
        assert pcm.tolist() == [32767, -32767, 0]

    def test_write_wav(self, tmp_path, encoder):
        samples = encoder.encode(b"\xA5")
        path = tmp_path / "out.wav"
        frames = write_wav(path, samples, 44100)
        assert frames == len(samples)

        info = sf.info(str(path))
        assert info.samplerate == 44100
        assert info.channels == 1
        assert info.frames == len(samples)
        assert info.subtype == "PCM_16"

        data, rate = sf.read(str(path), dtype="float32")
        assert rate == 44100
        np.testing.assert_array_equal(np.sign(data), samples)
