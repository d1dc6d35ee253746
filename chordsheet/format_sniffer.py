"""
Lightweight format detection for uploaded score and chart files.

Reads up to 2 KB of raw bytes plus the filename extension and returns a tag
naming the most likely format. Detection order (first match wins):

1. ZIP magic bytes                 -> compressed-musicxml
2. XML prolog / score root element -> musicxml
3. ChordPro directives             -> chordpro
4. UG-style section headers        -> ultimate-guitar
5. Inline bracket chords           -> chordpro
6. Chords-over-words heuristic     -> chords-over-words
7. File-extension fallback         -> chordpro or unknown
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Final, Literal

from chordsheet.chart_models import SourceFormat
from chordsheet.chord_symbols import is_chord_line

DetectedFormat = Literal[
    "compressed-musicxml",
    "musicxml",
    "chordpro",
    "ultimate-guitar",
    "chords-over-words",
    "unknown",
]

SNIFF_BYTES: Final[int] = 2048

ZIP_MAGIC: Final[bytes] = b"PK\x03\x04"

CHORDPRO_EXTENSIONS: Final[set[str]] = {"cho", "chopro", "chord", "crd", "pro"}

_DIRECTIVE_RE: Final[re.Pattern[str]] = re.compile(
    r"\{\s*(?:title|t|artist|a|subtitle|st|key|capo|tempo|time|start_of_chorus|soc"
    r"|start_of_verse|sov|start_of_grid|sog|start_of_bridge|sob|comment|c)\s*[}:]",
    re.IGNORECASE,
)

_UG_SECTION_RE: Final[re.Pattern[str]] = re.compile(
    r"^\[(?:Verse|Chorus|Bridge|Intro|Outro|Pre-?Chorus|Interlude|Hook|Solo|Instrumental|Refrain)[^\]]*\]",
    re.IGNORECASE | re.MULTILINE,
)

_BRACKET_CHORD_RE: Final[re.Pattern[str]] = re.compile(r"\[[A-G][#b]?[^\]\n]{0,10}\]")


def _extension(filename: str) -> str:
    return PurePath(filename).suffix.lstrip(".").lower()


def _looks_like_chords_over_words(head: str) -> bool:
    chord_lines = 0
    text_lines = 0
    for line in head.splitlines():
        if not line.strip():
            continue
        if is_chord_line(line, min_chords=2):
            chord_lines += 1
        else:
            text_lines += 1
    return chord_lines >= 2 and chord_lines >= text_lines * 0.25


def sniff_format(data: bytes, filename: str = "") -> DetectedFormat:
    """
    Classify a file from its leading bytes and its name.

    Args:
        data:     Raw file content; only the first 2 KB are inspected.
        filename: Original filename, used for the extension checks.

    Returns:
        One of the ``DetectedFormat`` tags.
    """
    if data[:4] == ZIP_MAGIC:
        return "compressed-musicxml"

    ext = _extension(filename)
    head = data[:SNIFF_BYTES].decode("utf-8", errors="replace")

    if "<score-partwise" in head or "<score-timewise" in head:
        return "musicxml"
    if ext in {"xml", "musicxml"} and head.lstrip().startswith("<?xml"):
        return "musicxml"

    if _DIRECTIVE_RE.search(head):
        return "chordpro"

    if _UG_SECTION_RE.search(head):
        return "ultimate-guitar"

    if _BRACKET_CHORD_RE.search(head):
        return "chordpro"

    if _looks_like_chords_over_words(head):
        return "chords-over-words"

    if ext in CHORDPRO_EXTENSIONS:
        return "chordpro"

    return "unknown"


def is_musicxml_format(detected: DetectedFormat) -> bool:
    return detected in ("musicxml", "compressed-musicxml")


def is_chord_chart_format(detected: DetectedFormat) -> bool:
    return detected in ("chordpro", "ultimate-guitar", "chords-over-words")


def as_source_format(detected: DetectedFormat) -> SourceFormat | None:
    """Narrow a detected tag to a chart dialect, or None for non-chart formats."""
    if detected == "chordpro":
        return "chordpro"
    if detected == "ultimate-guitar":
        return "ultimate-guitar"
    if detected == "chords-over-words":
        return "chords-over-words"
    return None
