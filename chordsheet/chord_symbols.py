"""Chord-symbol grammar shared by the format sniffer and the chart parsers."""

import re
from typing import Final

# Root + optional quality + optional extension + optional slash bass.
CHORD_TOKEN_RE: Final[re.Pattern[str]] = re.compile(
    r"^[A-G][#b]?(?:m(?:aj)?|M|maj|min|dim|aug|sus[24]?|add\d*)?(?:\d+)?(?:/[A-G][#b]?)?$"
)

CHORD_LINE_RATIO: Final[float] = 0.7


def is_chord_token(token: str) -> bool:
    """Return True when a single whitespace-free token looks like a chord name."""
    return CHORD_TOKEN_RE.match(token) is not None


def is_chord_line(line: str, min_chords: int = 1) -> bool:
    """
    Classify a text line as a chord line.

    A chord line has at least *min_chords* tokens matching the chord grammar,
    and at least 70% of its whitespace-delimited tokens match.
    """
    tokens = line.split()
    if not tokens:
        return False
    matches = sum(1 for token in tokens if is_chord_token(token))
    return matches >= min_chords and matches / len(tokens) >= CHORD_LINE_RATIO
