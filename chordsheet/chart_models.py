"""Normalized data model for text chord charts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

SourceFormat = Literal["chordpro", "ultimate-guitar", "chords-over-words"]

SectionType = Literal[
    "verse",
    "chorus",
    "bridge",
    "intro",
    "outro",
    "pre-chorus",
    "interlude",
    "solo",
    "grid",
    "tab",
    "unknown",
]


@dataclass(frozen=True)
class ChordToken:
    """Raw chord name as found in the source, e.g. ``Am7`` or ``F#/A``."""

    text: str
    kind: Literal["chord"] = "chord"


@dataclass(frozen=True)
class LyricToken:
    """Lyric text, kept verbatim including inner spacing."""

    text: str
    kind: Literal["lyric"] = "lyric"


@dataclass(frozen=True)
class CommentToken:
    """An annotation such as ``{comment: Repeat x2}``."""

    text: str
    kind: Literal["comment"] = "comment"


ChartToken = ChordToken | LyricToken | CommentToken


@dataclass(frozen=True)
class ChartLine:
    """Tokens in reading order, left to right."""

    tokens: tuple[ChartToken, ...] = ()


@dataclass(frozen=True)
class ChartSection:
    """A labelled block of lines (verse, chorus, ...)."""

    type: SectionType = "unknown"
    label: str | None = None
    lines: tuple[ChartLine, ...] = ()


@dataclass(frozen=True)
class ChordChartDocument:
    """
    Format-agnostic chart produced by any of the dialect parsers.

    Sections never contain empty lines and empty sections are never kept.
    """

    source_format: SourceFormat
    sections: tuple[ChartSection, ...] = field(default_factory=tuple)
    title: str | None = None
    artist: str | None = None
    subtitle: str | None = None
    key: str | None = None
    capo: str | None = None
    tempo: str | None = None
    time: str | None = None

    @property
    def chords(self) -> list[str]:
        """Every chord token text in document order."""
        return [
            token.text
            for section in self.sections
            for line in section.lines
            for token in line.tokens
            if isinstance(token, ChordToken)
        ]
