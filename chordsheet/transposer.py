"""Semitone transposition of chord symbols and chord chart documents."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Final

from chordsheet.chart_models import ChartLine, ChartSection, ChordChartDocument, ChordToken

# Chromatic pitch class names (index 0 = C)
NOTE_NAMES: Final[tuple[str, ...]] = (
    "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B",
)

#: Flat spellings mapped to the sharp spelling used by NOTE_NAMES.
FLAT_TO_SHARP: Final[dict[str, str]] = {
    "Cb": "B",
    "Db": "C#",
    "Eb": "D#",
    "Fb": "E",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    "E#": "F",
    "B#": "C",
}

_ROOT_RE: Final[re.Pattern[str]] = re.compile(r"^([A-G][#b]?)(.*)$", re.DOTALL)


def _transpose_root(root: str, steps: int) -> str:
    normalized = FLAT_TO_SHARP.get(root, root)
    if normalized not in NOTE_NAMES:
        return root
    index = NOTE_NAMES.index(normalized)
    return NOTE_NAMES[((index + steps) % 12 + 12) % 12]


def transpose_chord(chord: str, steps: int) -> str:
    """
    Shift a chord symbol by *steps* semitones (negative = down).

    Slash chords have both sides transposed (``Am/G`` + 2 -> ``Bm/A``). The
    quality suffix is kept as written. Results are spelled with sharps.
    Anything that does not start with a root letter is returned unchanged, and
    ``steps == 0`` returns the very same string.
    """
    if steps == 0:
        return chord

    slash = chord.rfind("/")
    if slash > 0:
        upper, bass = chord[:slash], chord[slash + 1:]
        return f"{transpose_chord(upper, steps)}/{transpose_chord(bass, steps)}"

    match = _ROOT_RE.match(chord)
    if not match:
        return chord
    root, rest = match.groups()
    return f"{_transpose_root(root, steps)}{rest}"


def transpose_line(line: ChartLine, steps: int) -> ChartLine:
    tokens = tuple(
        ChordToken(transpose_chord(token.text, steps)) if isinstance(token, ChordToken) else token
        for token in line.tokens
    )
    return ChartLine(tokens=tokens)


def transpose_document(document: ChordChartDocument, steps: int) -> ChordChartDocument:
    """
    Return a transposed view of *document*; the source is left untouched.

    Every chord token and the ``key`` field are shifted.
    """
    if steps == 0:
        return document

    sections = tuple(
        ChartSection(
            type=section.type,
            label=section.label,
            lines=tuple(transpose_line(line, steps) for line in section.lines),
        )
        for section in document.sections
    )
    key = transpose_chord(document.key, steps) if document.key else document.key
    return replace(document, sections=sections, key=key)
