"""
MusicXML -> ChordPro conversion engine.

A single pass per call, no state kept between calls:

1. parse the XML into typed parts/measures (the only fatal step)
2. extract title, composer, key and time signature
3. pick the part carrying the most lyrics
4. build the per-measure timeline of harmonies and lyrics
5. resolve repeats, resolve the format mode, render, assemble
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Final

from chordsheet.chordpro_renderers import ChordProRenderer, GridRenderer, LyricsInlineRenderer
from chordsheet.musicxml_reader import KeySignature, ScoreXml, read_musicxml
from chordsheet.score_models import (
    ConverterDiagnostics,
    ConvertOptions,
    ConvertResult,
    MeasureData,
    ResolvedFormatMode,
)
from chordsheet.timeline import build_timeline, resolve_measure_order, select_lyric_part

logger = logging.getLogger(__name__)

UNTITLED: Final[str] = "{title: Untitled}"
PARSE_FAILURE_OUTPUT: Final[str] = f"{UNTITLED}\n% Failed to parse MusicXML."
CONVERT_FAILURE_OUTPUT: Final[str] = f"{UNTITLED}\n% Failed to convert MusicXML."
PARSE_ERROR_MESSAGE: Final[str] = "MusicXML parser error"

NO_HARMONY_WARNING: Final[str] = "no harmony found"
NO_LYRICS_WARNING: Final[str] = "no lyrics found"
UNEXPANDED_REPEATS_WARNING: Final[str] = "repeats present but not expanded"
UNEXPANDED_REPEATS_COMMENT: Final[str] = "% Repeats in the original score are not expanded."

#: Major key and its pitch class, indexed by ``fifths + 7``.
MAJOR_KEYS_BY_FIFTHS: Final[tuple[tuple[str, int], ...]] = (
    ("Cb", 11),
    ("Gb", 6),
    ("Db", 1),
    ("Ab", 8),
    ("Eb", 3),
    ("Bb", 10),
    ("F", 5),
    ("C", 0),
    ("G", 7),
    ("D", 2),
    ("A", 9),
    ("E", 4),
    ("B", 11),
    ("F#", 6),
    ("C#", 1),
)

#: Minor tonic spelling by pitch class.
MINOR_TONICS: Final[tuple[str, ...]] = (
    "C", "C#", "D", "Eb", "E", "F", "F#", "G", "G#", "A", "Bb", "B",
)

RELATIVE_MINOR_SHIFT: Final[int] = 9

_RENDERERS: Final[dict[ResolvedFormatMode, ChordProRenderer]] = {
    "lyrics-inline": LyricsInlineRenderer(),
    "grid-only": GridRenderer(),
}


@dataclass(frozen=True)
class ScoreMetadata:
    title: str | None = None
    composer: str | None = None
    key: str | None = None
    time: str | None = None


def key_signature_name(key: KeySignature | None) -> str | None:
    """
    Name the key for a ``fifths``/``mode`` pair, e.g. (-3, "minor") -> ``Cm``.

    Fifths outside [-7, 7] give None.
    """
    if key is None:
        return None
    index = key.fifths + 7
    if not 0 <= index < len(MAJOR_KEYS_BY_FIFTHS):
        return None
    major, pitch_class = MAJOR_KEYS_BY_FIFTHS[index]
    if (key.mode or "major").lower() == "minor":
        return f"{MINOR_TONICS[(pitch_class + RELATIVE_MINOR_SHIFT) % 12]}m"
    return major


def extract_metadata(score: ScoreXml) -> ScoreMetadata:
    return ScoreMetadata(
        title=score.title,
        composer=score.composer,
        key=key_signature_name(score.key),
        time=str(score.time) if score.time else None,
    )


def _natural_key(value: str) -> list[int | str]:
    return [int(token) if token.isdigit() else token.lower() for token in re.split(r"(\d+)", value)]


def _summarize(measures: list[MeasureData], diagnostics: ConverterDiagnostics) -> None:
    verses: set[str] = set()
    for measure in measures:
        if measure.repeat_start or measure.repeat_end:
            diagnostics.repeat_markers_found += 1
        diagnostics.endings_found += len(measure.endings)
        if measure.harmonies:
            diagnostics.has_any_harmony = True
        for verse, events in measure.lyrics_by_verse.items():
            if events:
                diagnostics.has_any_lyrics = True
                verses.add(verse)
    diagnostics.verses_detected = sorted(verses, key=_natural_key)


def _metadata_lines(metadata: ScoreMetadata, options: ConvertOptions) -> list[str]:
    if options.metadata_policy == "omit":
        return []
    lines: list[str] = []
    if metadata.title:
        lines.append(f"{{title: {metadata.title}}}")
    if metadata.composer:
        lines.append(f"{{composer: {metadata.composer}}}")
    if options.key_policy == "emit-if-known" and metadata.key:
        lines.append(f"{{key: {metadata.key}}}")
    if options.time_policy == "emit-if-known" and metadata.time:
        lines.append(f"{{time: {metadata.time}}}")
    return lines


def _convert_score(
    score: ScoreXml,
    options: ConvertOptions,
    diagnostics: ConverterDiagnostics,
    warnings: list[str],
) -> str:
    """Run the pipeline on a parsed score, appending to *warnings* as it goes."""
    metadata = extract_metadata(score)
    diagnostics.title = metadata.title
    diagnostics.composer = metadata.composer
    diagnostics.key = metadata.key
    diagnostics.time = metadata.time

    lyric_part_index = select_lyric_part(score.parts)
    if lyric_part_index is not None:
        diagnostics.selected_lyric_part_id = score.parts[lyric_part_index].part_id

    measures = build_timeline(score.parts, lyric_part_index)
    diagnostics.measures_count = len(measures)
    _summarize(measures, diagnostics)

    order, repeat_warnings = resolve_measure_order(measures, options.repeat_strategy)
    warnings.extend(repeat_warnings)
    ordered = [measures[position] for position in order]
    repeats_unexpanded = diagnostics.repeat_markers_found > 0 and len(order) == len(measures)

    if options.format_mode == "auto":
        mode: ResolvedFormatMode = "lyrics-inline" if diagnostics.has_any_lyrics else "grid-only"
    else:
        mode = options.format_mode
    diagnostics.format_mode_resolved = mode
    logger.debug(
        "Lyric part %s, %d measure(s), verses %s, mode %s",
        diagnostics.selected_lyric_part_id,
        len(measures),
        diagnostics.verses_detected,
        mode,
    )

    if not diagnostics.has_any_harmony:
        warnings.append(NO_HARMONY_WARNING)
    if not diagnostics.has_any_lyrics and mode == "lyrics-inline":
        warnings.append(NO_LYRICS_WARNING)

    body, render_warnings = _RENDERERS[mode].render(
        ordered,
        options=options,
        verses=diagnostics.verses_detected,
        time_signature=metadata.time,
    )
    warnings.extend(render_warnings)

    lines = _metadata_lines(metadata, options)
    if lines and body:
        lines.append("")
    lines.extend(body)

    if repeats_unexpanded:
        warnings.append(UNEXPANDED_REPEATS_WARNING)
        if options.annotate_unexpanded_repeats:
            lines.append(UNEXPANDED_REPEATS_COMMENT)

    if not lines:
        lines.append(UNTITLED)
    return "\n".join(lines)


def convert_musicxml_to_chordpro(
    xml_text: str,
    options: ConvertOptions | None = None,
    *,
    filename: str | None = None,
    is_compressed: bool = False,
) -> ConvertResult:
    """
    Convert MusicXML text into ChordPro.

    Never raises for bad input: malformed XML yields a fixed degraded output
    with ``error`` set, and every other problem is reported as a warning.

    Args:
        xml_text:      Plain MusicXML text (an .mxl archive must already be extracted).
        options:       Conversion settings; defaults when omitted.
        filename:      Original filename, recorded in the diagnostics.
        is_compressed: Whether the caller extracted the text from an .mxl archive.
    """
    options = options or ConvertOptions()
    diagnostics = ConverterDiagnostics(
        filename=filename,
        is_compressed=is_compressed,
        bars_per_line=options.bars_per_line,
    )

    try:
        score = read_musicxml(xml_text)
    except ET.ParseError as exc:
        logger.warning("Could not parse MusicXML %s: %s", filename or "<input>", exc)
        return ConvertResult(
            chordpro=PARSE_FAILURE_OUTPUT,
            warnings=[],
            diagnostics=diagnostics,
            error=PARSE_ERROR_MESSAGE,
        )

    diagnostics.parts_count = len(score.parts)
    warnings: list[str] = []

    try:
        chordpro = _convert_score(score, options, diagnostics, warnings)
    except Exception as exc:
        logger.exception("MusicXML conversion failed")
        return ConvertResult(
            chordpro=CONVERT_FAILURE_OUTPUT,
            warnings=warnings,
            diagnostics=diagnostics,
            error=str(exc) or "Unknown conversion failure",
        )

    logger.info(
        "Converted %s: %d measure(s), %d warning(s)",
        filename or "<input>",
        diagnostics.measures_count,
        len(warnings),
    )
    return ConvertResult(chordpro=chordpro, warnings=warnings, diagnostics=diagnostics)
