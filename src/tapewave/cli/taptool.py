"""
taptool - Tape Image Command-Line Interface
===========================================

This module implements the command-line interface for inspecting tape
images and rendering them to audio.

Commands
--------
- **list**: List the blocks of a tape image
- **info**: Show the headers of a tape image in detail
- **render**: Encode every payload as a pulse train and write a WAV file

Usage Examples
--------------
List blocks:
    $ taptool list game.tap

Show header details, rejecting odd array headers:
    $ taptool --strict-arrays info game.tap

Render to audio at 48 kHz:
    $ taptool render game.tap -o game.wav --sample-rate 48000

Read images written with the extra 4 bytes after each header:
    $ taptool --legacy-companion list old.tap
"""

import logging
from pathlib import Path
from typing import Optional

import click

from tapewave import __version__
from tapewave.audio import render_blocks, write_wav
from tapewave.cli.errors import handle_cli_exception
from tapewave.config import (
    LEGACY_COMPANION_PADDING,
    ArrayHeaderPolicy,
    InvalidTagPolicy,
    ParserConfig,
    PulseTiming,
    SampleRounding,
)
from tapewave.tap import ArrayParams, BytesParams, ProgramParams, TapImage

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the parser options and verbosity chosen on the command group.
    """

    def __init__(self) -> None:
        self.verbose: bool = False
        self.parser_config: ParserConfig = ParserConfig()

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s",
        )

    def load(self, tap_file: Path) -> TapImage:
        return TapImage.from_file(tap_file, self.parser_config)


pass_context = click.make_pass_decorator(Context, ensure=True)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="taptool")
@click.option(
    "--strict-arrays",
    is_flag=True,
    help="Fail on array headers whose reserved bytes are not 00 80",
)
@click.option(
    "--skip-invalid",
    is_flag=True,
    help="Skip blocks with an unknown flag or header type instead of failing",
)
@click.option(
    "--legacy-companion",
    is_flag=True,
    help=f"Read {LEGACY_COMPANION_PADDING} extra bytes after each header block",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose (debug) logging",
)
@pass_context
def main(
    ctx: Context,
    strict_arrays: bool,
    skip_invalid: bool,
    legacy_companion: bool,
    verbose: bool,
) -> None:
    """
    Tape image decoder and pulse train renderer.

    \b
    Commands:
      list      List the blocks of a tape image
      info      Show header details
      render    Write the image's pulse train to a WAV file

    \b
    Examples:
      taptool list game.tap
      taptool render game.tap -o game.wav
    """
    ctx.verbose = verbose
    ctx.parser_config = ParserConfig(
        array_header_policy=ArrayHeaderPolicy.STRICT if strict_arrays else ArrayHeaderPolicy.LENIENT,
        on_invalid_tag=InvalidTagPolicy.SKIP if skip_invalid else InvalidTagPolicy.ABORT,
        companion_padding=LEGACY_COMPANION_PADDING if legacy_companion else 0,
    )
    ctx.setup_logging()


# =============================================================================
# List Command
# =============================================================================

@main.command("list")
@click.argument(
    "tap_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_list(ctx: Context, tap_file: Path) -> None:
    """
    List the blocks of a tape image.

    \b
    Output format:
      #   Offset  Type             Name        Size
      0   0x0000  Program          HELLO         42
      1   0x003F  Data                          512
    """
    try:
        image = ctx.load(tap_file)

        click.echo(f"{'#':<4}{'Offset':<8}{'Type':<17}{'Name':<11}{'Size':>6}")
        click.echo("-" * 46)
        for block in image.blocks:
            name = block.header.get_display_name() if block.header else ""
            size = len(block.payload) if block.payload is not None else block.declared_length
            click.echo(
                f"{block.index:<4}0x{block.offset:04X}  "
                f"{block.get_type_name():<17}{name:<11}{size:>6}"
            )

        if ctx.verbose:
            info = image.get_info()
            click.echo("-" * 46)
            click.echo(f"Total: {info['block_count']} blocks, {info['payload_bytes']} payload bytes")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Info Command
# =============================================================================

def _describe_params(params) -> list[str]:
    """Format header parameters as indented lines."""
    if isinstance(params, ProgramParams):
        autostart = str(params.autostart_line) if params.has_autostart else "none"
        return [
            f"  Autostart:   {autostart}",
            f"  Program:     {params.program_length} bytes",
        ]
    if isinstance(params, ArrayParams):
        status = "ok" if params.is_well_formed else "MALFORMED"
        return [
            f"  Variable:    {params.get_variable_letter()} (0x{params.variable_name:02X})",
            f"  Reserved:    {params.reserved2.hex(' ')} ({status})",
        ]
    if isinstance(params, BytesParams):
        return [
            f"  Start:       0x{params.start_address:04X} ({params.start_address})",
            f"  Reserved:    {params.reserved.hex(' ')}",
        ]
    raise TypeError(f"unknown header params {params!r}")


@main.command("info")
@click.argument(
    "tap_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def cmd_info(ctx: Context, tap_file: Path) -> None:
    """
    Show detailed information about a tape image.

    \b
    Output includes:
      - Block counts and sizes
      - Every header with its kind-specific parameters
      - The checksum byte of each header (not verified)
    """
    try:
        image = ctx.load(tap_file)
        info = image.get_info()

        click.echo(f"Tape Information: {tap_file}")
        click.echo("=" * 40)
        click.echo(f"Size:         {info['size']} bytes")
        click.echo(f"Blocks:       {info['block_count']}")
        click.echo(f"  Headers:    {info['header_count']}")
        click.echo(f"  Data:       {info['data_block_count']}")
        click.echo(f"  Unsupported:{info['unsupported_count']:>2}")
        click.echo(f"Payload:      {info['payload_bytes']} bytes")

        for block in image.blocks:
            header = block.header
            if header is None:
                continue
            click.echo()
            click.echo(f"Block {block.index}: {header.kind.get_description()} \"{header.get_display_name()}\"")
            click.echo(f"  Data length: {header.declared_data_length} bytes")
            for line in _describe_params(header.params):
                click.echo(line)
            click.echo(f"  Checksum:    0x{header.checksum:02X}")

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Render Command
# =============================================================================

@main.command("render")
@click.argument(
    "tap_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output WAV file path (required)",
)
@click.option(
    "-r", "--sample-rate",
    type=click.IntRange(min=1),
    default=None,
    help="Sample rate in Hz (default: 44100 or $TAPEWAVE_SAMPLE_RATE)",
)
@click.option(
    "--truncate",
    is_flag=True,
    help="Truncate bit lengths to whole samples instead of rounding",
)
@pass_context
def cmd_render(
    ctx: Context,
    tap_file: Path,
    output: Path,
    sample_rate: Optional[int],
    truncate: bool,
) -> None:
    """
    Render the payloads of a tape image as a WAV file.

    Every block that carries a payload is encoded in image order.

    \b
    Examples:
      taptool render game.tap -o game.wav
      taptool render game.tap -o game.wav -r 48000 --truncate
    """
    try:
        image = ctx.load(tap_file)

        timing = PulseTiming.from_env()
        timing = PulseTiming(
            sample_rate=sample_rate or timing.sample_rate,
            rounding=SampleRounding.TRUNCATE if truncate else SampleRounding.ROUND,
        )

        samples = render_blocks(image.blocks, timing)
        if len(samples) == 0:
            click.echo("No payloads to render", err=True)
            return

        frames = write_wav(output, samples, timing.sample_rate)
        seconds = frames / timing.sample_rate
        click.echo(
            f"Rendered {len(image.payload_blocks())} blocks to {output} "
            f"({frames} samples, {seconds:.2f}s at {timing.sample_rate} Hz)"
        )

    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


if __name__ == "__main__":
    main()
