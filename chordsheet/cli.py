"""chordsheet CLI entry point."""

import logging
import sys
from pathlib import Path

import click

from chordsheet import __version__
from chordsheet.exporter import SUPPORTED_INPUT_FORMATS, ChordProExporter, ExportResult
from chordsheet.format_sniffer import SNIFF_BYTES, sniff_format
from chordsheet.score_models import DEFAULT_BARS_PER_LINE, ConvertOptions

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
STDOUT = "-"


def _default_output(input_file: str) -> str:
    """``song.musicxml`` -> ``song.cho`` next to the input."""
    return str(Path(input_file).with_suffix(".cho"))


def _report(result: ExportResult) -> None:
    for warning in result.warnings:
        click.echo(f"  WARNING: {warning}", err=True)
    if result.error:
        click.echo(f"  ERROR: {result.error}", err=True)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="chordsheet")
@click.option("--verbose", "-v", is_flag=True, help="Log conversion details to stderr.")
def main(verbose: bool) -> None:
    """chordsheet — MusicXML and chord charts to ChordPro."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, datefmt="%H:%M:%S")


# ── convert subcommand ─────────────────────────────────────────────────────────

@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination ChordPro file. Defaults to <input>.cho; '-' prints to stdout.",
)
@click.option(
    "--format",
    "input_format",
    type=click.Choice(sorted(SUPPORTED_INPUT_FORMATS), case_sensitive=False),
    default="auto",
    show_default=True,
    help="Input format. 'auto' sniffs it from the file content.",
)
@click.option(
    "--transpose",
    type=int,
    default=0,
    show_default=True,
    metavar="STEPS",
    help="Semitones to transpose chord charts by (negative = down).",
)
@click.option(
    "--bars-per-line",
    type=click.IntRange(min=1),
    default=DEFAULT_BARS_PER_LINE,
    show_default=True,
    help="Measures per output line (MusicXML only).",
)
@click.option(
    "--grid-slots",
    type=click.IntRange(min=1),
    default=None,
    help="Slots per measure in grid mode. Defaults to the time signature numerator.",
)
@click.option(
    "--barlines",
    type=click.Choice(["pipes", "none"]),
    default="pipes",
    show_default=True,
    help="Frame each line of measures with '|' barlines.",
)
@click.option(
    "--wrap",
    type=click.Choice(["bars-per-line", "no-wrap"]),
    default="bars-per-line",
    show_default=True,
    help="Wrap measures into lines, or keep the whole piece on one line.",
)
@click.option(
    "--brackets",
    type=click.Choice(["separate", "combined"]),
    default="separate",
    show_default=True,
    help="Write chords on one syllable as [C][G] (separate) or [C G] (combined).",
)
@click.option(
    "--mode",
    type=click.Choice(["auto", "lyrics-inline", "grid-only"]),
    default="auto",
    show_default=True,
    help="Body style. 'auto' picks lyrics-inline when the score has lyrics.",
)
@click.option(
    "--repeats",
    type=click.Choice(["none", "simple-unroll"]),
    default="none",
    show_default=True,
    help="Play the first repeated section twice ('simple-unroll') or leave it as written.",
)
@click.option("--no-repeat-note", is_flag=True, help="Do not add a comment about unexpanded repeats.")
@click.option("--no-metadata", is_flag=True, help="Omit title/composer/key/time directives.")
@click.option("--no-key", is_flag=True, help="Omit the key directive.")
@click.option("--no-time", is_flag=True, help="Omit the time signature directive.")
@click.option("--keep-whitespace", is_flag=True, help="Do not collapse whitespace in lyric measures.")
def convert(
    input_file: str,
    output: str | None,
    input_format: str,
    transpose: int,
    bars_per_line: int,
    grid_slots: int | None,
    barlines: str,
    wrap: str,
    brackets: str,
    mode: str,
    repeats: str,
    no_repeat_note: bool,
    no_metadata: bool,
    no_key: bool,
    no_time: bool,
    keep_whitespace: bool,
) -> None:
    """
    Convert a MusicXML score or a text chord chart to ChordPro.

    INPUT_FILE is an uncompressed MusicXML file, a ChordPro file, an Ultimate
    Guitar chart or a chords-over-words chart.

    \b
    Examples:
      chordsheet convert song.musicxml
      chordsheet convert song.musicxml --mode grid-only --grid-slots 8 -o -
      chordsheet convert chart.txt --transpose -2 -o chart.cho
    """
    options = ConvertOptions(
        bars_per_line=bars_per_line,
        grid_slots_per_measure=grid_slots,
        barline_style=barlines,  # type: ignore[arg-type]
        wrap_policy=wrap,  # type: ignore[arg-type]
        chord_bracket_style=brackets,  # type: ignore[arg-type]
        format_mode=mode,  # type: ignore[arg-type]
        repeat_strategy=repeats,  # type: ignore[arg-type]
        annotate_unexpanded_repeats=not no_repeat_note,
        metadata_policy="omit" if no_metadata else "emit",
        key_policy="omit" if no_key else "emit-if-known",
        time_policy="omit" if no_time else "emit-if-known",
        normalize_whitespace=not keep_whitespace,
    )
    exporter = ChordProExporter(options=options, input_format=input_format, transpose=transpose)

    if output == STDOUT:
        try:
            data = Path(input_file).read_bytes()
            result = exporter.convert(data, filename=input_file)
        except (OSError, ValueError) as exc:
            click.echo(f"  ERROR: {exc}", err=True)
            sys.exit(1)
        click.echo(result.chordpro)
        _report(result)
        if result.error:
            sys.exit(1)
        return

    resolved_output = output if output is not None else _default_output(input_file)
    click.echo(f"chordsheet v{__version__}")
    click.echo(f"  Input  : {input_file}")
    click.echo(f"  Output : {resolved_output}")
    click.echo()

    try:
        result = exporter.export(input_file, resolved_output)
    except OSError as exc:
        click.echo(f"  ERROR: Could not read or write file — {exc}", err=True)
        sys.exit(1)
    except ValueError as exc:
        click.echo(f"  ERROR: Could not convert input — {exc}", err=True)
        sys.exit(1)

    click.echo(f"  Format : {result.detected_format}")
    if result.diagnostics is not None:
        diagnostics = result.diagnostics
        click.echo(f"  Parts  : {diagnostics.parts_count}  |  Measures: {diagnostics.measures_count}")
        click.echo(f"  Mode   : {diagnostics.format_mode_resolved}")
    _report(result)
    if result.error:
        sys.exit(1)

    click.echo()
    click.echo(f"Done!  Wrote '{resolved_output}'.")


# ── sniff subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, readable=True))
def sniff(input_file: str) -> None:
    """Print the detected format of INPUT_FILE."""
    with open(input_file, "rb") as fh:
        head = fh.read(SNIFF_BYTES)
    click.echo(sniff_format(head, input_file))
