"""
taptool CLI Tests
=================

Runs the command group through click's CliRunner against small images
written to a temporary directory.
"""

import pytest
import soundfile as sf
from click.testing import CliRunner

from tapewave.cli.taptool import main

from conftest import make_block, make_data_block, make_header_block


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def array_tap_file(tmp_path):
    """A number array header with reserved bytes 00 00, plus its payload."""
    path = tmp_path / "array.tap"
    path.write_bytes(
        make_header_block(0x01, name=b"NUMBERS", data_length=2, params=b"\x00\x81\x00\x00")
        + b"\x01\x02"
    )
    return path


class TestTaptool:
    """Tests for the taptool command group."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Tape image decoder" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_list(self, runner, sample_tap_file):
        result = runner.invoke(main, ["list", str(sample_tap_file)])
        assert result.exit_code == 0
        assert "HELLO" in result.output
        assert "Program" in result.output
        assert "Data" in result.output

    def test_list_verbose(self, runner, sample_tap_file):
        result = runner.invoke(main, ["-v", "list", str(sample_tap_file)])
        assert result.exit_code == 0
        assert "Total: 2 blocks, 8 payload bytes" in result.output

    def test_info(self, runner, sample_tap_file):
        result = runner.invoke(main, ["info", str(sample_tap_file)])
        assert result.exit_code == 0
        assert "Block 0: Program \"HELLO\"" in result.output
        assert "Autostart:   10" in result.output
        assert "Checksum:    0x5A" in result.output

    def test_info_array(self, runner, array_tap_file):
        result = runner.invoke(main, ["info", str(array_tap_file)])
        assert result.exit_code == 0
        assert "Number array" in result.output
        assert "MALFORMED" in result.output

    def test_strict_arrays(self, runner, array_tap_file):
        result = runner.invoke(main, ["--strict-arrays", "info", str(array_tap_file)])
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "00 80" in result.output

    def test_truncated_image(self, runner, tmp_path, sample_tap_bytes):
        path = tmp_path / "short.tap"
        path.write_bytes(sample_tap_bytes[:-2])
        result = runner.invoke(main, ["list", str(path)])
        assert result.exit_code == 1
        assert "block 1" in result.output

    def test_invalid_flag_skipped(self, runner, tmp_path):
        path = tmp_path / "odd.tap"
        path.write_bytes(make_block(b"\x42\x00") + make_data_block(b"\x01"))
        assert runner.invoke(main, ["list", str(path)]).exit_code == 1
        result = runner.invoke(main, ["--skip-invalid", "list", str(path)])
        assert result.exit_code == 0
        assert "Unsupported" in result.output

    def test_legacy_companion(self, runner, tmp_path):
        path = tmp_path / "legacy.tap"
        path.write_bytes(
            make_header_block(0x03, name=b"CODE", data_length=2) + make_data_block(b"\x01\x02\x03")
        )
        result = runner.invoke(main, ["--legacy-companion", "list", str(path)])
        assert result.exit_code == 0
        assert "CODE" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["list", str(tmp_path / "missing.tap")])
        assert result.exit_code == 2

    def test_render(self, runner, tmp_path, sample_tap_file):
        out = tmp_path / "out.wav"
        result = runner.invoke(main, ["render", str(sample_tap_file), "-o", str(out)])
        assert result.exit_code == 0
        assert "Rendered 2 blocks" in result.output
        info = sf.info(str(out))
        assert info.samplerate == 44100
        assert info.channels == 1

    def test_render_sample_rate(self, runner, tmp_path, sample_tap_file):
        out = tmp_path / "out.wav"
        result = runner.invoke(
            main, ["render", str(sample_tap_file), "-o", str(out), "-r", "8000", "--truncate"]
        )
        assert result.exit_code == 0
        assert sf.info(str(out)).samplerate == 8000

    def test_render_rejects_zero_rate(self, runner, tmp_path, sample_tap_file):
        out = tmp_path / "out.wav"
        result = runner.invoke(main, ["render", str(sample_tap_file), "-o", str(out), "-r", "0"])
        assert result.exit_code == 2
        assert not out.exists()

    def test_render_without_payloads(self, runner, tmp_path):
        path = tmp_path / "empty.tap"
        path.write_bytes(b"")
        out = tmp_path / "out.wav"
        result = runner.invoke(main, ["render", str(path), "-o", str(out)])
        assert result.exit_code == 0
        assert "No payloads" in result.output
        assert not out.exists()
