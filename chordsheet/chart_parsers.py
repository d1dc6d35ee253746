"""
Parsers for the three text chord-chart dialects.

1. ChordPro: ``{directives}`` plus ``[chord]`` tokens inline with lyrics.
2. Ultimate Guitar: ``[Section]`` headers plus ``[chord]`` tokens. A syntactic
   subset of what the ChordPro parser accepts, so it is parsed by it.
3. Chords-over-words: chord lines stacked above lyric lines.

All three produce a normalized ``ChordChartDocument``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Final

from chordsheet.chart_models import (
    ChartLine,
    ChartSection,
    ChartToken,
    ChordChartDocument,
    ChordToken,
    CommentToken,
    LyricToken,
    SectionType,
    SourceFormat,
)
from chordsheet.chord_symbols import is_chord_line

logger = logging.getLogger(__name__)

SUPPORTED_DIALECTS: Final[set[str]] = {"chordpro", "ultimate-guitar", "chords-over-words"}

#: Directive name -> ChordChartDocument metadata field.
DIRECTIVE_META: Final[dict[str, str]] = {
    "title": "title",
    "t": "title",
    "artist": "artist",
    "a": "artist",
    "subtitle": "subtitle",
    "st": "subtitle",
    "key": "key",
    "capo": "capo",
    "tempo": "tempo",
    "time": "time",
}

SECTION_START: Final[dict[str, SectionType]] = {
    "start_of_chorus": "chorus",
    "soc": "chorus",
    "start_of_verse": "verse",
    "sov": "verse",
    "start_of_bridge": "bridge",
    "sob": "bridge",
    "start_of_grid": "grid",
    "sog": "grid",
    "start_of_tab": "tab",
    "sot": "tab",
    "start_of_pre_chorus": "pre-chorus",
    "start_of_intro": "intro",
    "start_of_outro": "outro",
    "start_of_interlude": "interlude",
    "start_of_solo": "solo",
}

SECTION_END: Final[set[str]] = {
    "end_of_chorus",
    "eoc",
    "end_of_verse",
    "eov",
    "end_of_bridge",
    "eob",
    "end_of_grid",
    "eog",
    "end_of_tab",
    "eot",
    "end_of_pre_chorus",
    "end_of_intro",
    "end_of_outro",
    "end_of_interlude",
    "end_of_solo",
}

COMMENT_DIRECTIVES: Final[set[str]] = {"comment", "c", "comment_italic", "ci"}

#: Keyword checks in priority order; the first substring hit wins.
_LABEL_KEYWORDS: Final[list[tuple[tuple[str, ...], SectionType]]] = [
    (("chorus",), "chorus"),
    (("verse",), "verse"),
    (("bridge",), "bridge"),
    (("intro",), "intro"),
    (("outro",), "outro"),
    (("pre-chorus", "prechorus"), "pre-chorus"),
    (("interlude",), "interlude"),
    (("solo",), "solo"),
    (("grid",), "grid"),
    (("tab",), "tab"),
]

_DIRECTIVE_RE: Final[re.Pattern[str]] = re.compile(r"^\{([^:}]+)(?::([^}]*))?\}$")

_SECTION_HEADER_RE: Final[re.Pattern[str]] = re.compile(
    r"^\[(Verse|Chorus|Bridge|Intro|Outro|Pre-?Chorus|Interlude|Hook|Solo|Instrumental|Refrain)[^\]]*\]$",
    re.IGNORECASE,
)

_BRACKET_RE: Final[re.Pattern[str]] = re.compile(r"\[([^\]]+)\]([^\[]*)")


@dataclass
class _SectionBuilder:
    type: SectionType = "unknown"
    label: str | None = None
    lines: list[ChartLine] = field(default_factory=list)


def _normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def section_type_from_label(label: str) -> SectionType:
    """Classify a free-form section label such as ``Verse 2`` or ``Pre-Chorus``."""
    lowered = label.lower()
    for keywords, section_type in _LABEL_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return section_type
    return "unknown"


def _flush(sections: list[ChartSection], builder: _SectionBuilder) -> None:
    """Append *builder* as a section unless it holds no tokens at all."""
    lines = tuple(line for line in builder.lines if line.tokens)
    if lines:
        sections.append(ChartSection(type=builder.type, label=builder.label, lines=lines))


def parse_bracket_line(line: str) -> ChartLine:
    """
    Tokenize a line with inline ``[chord]`` markers.

    ``"[Am]Hello [G]world"`` becomes chord ``Am``, lyric ``"Hello "``, chord
    ``G``, lyric ``"world"``. Spacing inside lyric runs is preserved, and text
    from an unclosed ``[`` onwards is kept as a lyric.
    """
    tokens: list[ChartToken] = []

    first = line.find("[")
    if first > 0:
        leading = line[:first]
        if leading.strip():
            tokens.append(LyricToken(leading))

    end = max(first, 0)
    for match in _BRACKET_RE.finditer(line):
        tokens.append(ChordToken(match.group(1).strip()))
        trailing = match.group(2)
        if trailing:
            tokens.append(LyricToken(trailing))
        end = match.end()

    if line[end:]:
        tokens.append(LyricToken(line[end:]))
    return ChartLine(tokens=tuple(tokens))


# ── ChordPro ───────────────────────────────────────────────────────────────────

def parse_chordpro(text: str) -> ChordChartDocument:
    """
    Parse ChordPro text (a v5/v6-compatible subset).

    Handles ``{directives}``, inline ``[chord]`` tokens and UG-style
    ``[Section]`` headers, since real-world files mix both conventions.
    Unrecognized directives are dropped without complaint.
    """
    metadata: dict[str, str] = {}
    sections: list[ChartSection] = []
    current = _SectionBuilder()

    for raw_line in _normalize_line_endings(text).split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("%"):
            continue

        directive = _DIRECTIVE_RE.match(line)
        if directive:
            name = directive.group(1).strip().lower()
            value = (directive.group(2) or "").strip()

            meta_field = DIRECTIVE_META.get(name)
            if meta_field is not None and value:
                metadata[meta_field] = value
            elif name in SECTION_START:
                _flush(sections, current)
                current = _SectionBuilder(SECTION_START[name], value or None)
            elif name in SECTION_END:
                _flush(sections, current)
                current = _SectionBuilder()
            elif name in COMMENT_DIRECTIVES and value:
                current.lines.append(ChartLine(tokens=(CommentToken(value),)))
            continue

        if _SECTION_HEADER_RE.match(line):
            _flush(sections, current)
            label = line[1:-1]
            current = _SectionBuilder(section_type_from_label(label), label)
            continue

        if "[" in line:
            current.lines.append(parse_bracket_line(line))
            continue

        current.lines.append(ChartLine(tokens=(LyricToken(line),)))

    _flush(sections, current)
    logger.debug("Parsed ChordPro chart: %d section(s)", len(sections))
    return ChordChartDocument(source_format="chordpro", sections=tuple(sections), **metadata)


def parse_ultimate_guitar(text: str) -> ChordChartDocument:
    """Parse Ultimate Guitar text; the ChordPro parser already understands it."""
    return replace(parse_chordpro(text), source_format="ultimate-guitar")


# ── Chords over words ──────────────────────────────────────────────────────────

def parse_chords_over_words(text: str) -> ChordChartDocument:
    """
    Parse charts where each chord line sits directly above its lyric line.

    The chords of a chord line and the whole following lyric line are merged
    into one ``ChartLine``; the lyric is not split by chord column. A chord line
    without a lyric line beneath it becomes a chord-only line.
    """
    raw_lines = [line.strip() for line in _normalize_line_endings(text).split("\n")]
    lines: list[ChartLine] = []
    index = 0

    while index < len(raw_lines):
        line = raw_lines[index]
        if not line:
            index += 1
            continue

        if is_chord_line(line):
            chords: list[ChartToken] = [ChordToken(token) for token in line.split()]
            following = raw_lines[index + 1] if index + 1 < len(raw_lines) else ""
            if following and not is_chord_line(following):
                lines.append(ChartLine(tokens=(*chords, LyricToken(following))))
                index += 2
            else:
                lines.append(ChartLine(tokens=tuple(chords)))
                index += 1
            continue

        lines.append(ChartLine(tokens=(LyricToken(line),)))
        index += 1

    sections: list[ChartSection] = []
    _flush(sections, _SectionBuilder(lines=lines))
    logger.debug("Parsed chords-over-words chart: %d line(s)", len(lines))
    return ChordChartDocument(source_format="chords-over-words", sections=tuple(sections))


# ── Dispatch ───────────────────────────────────────────────────────────────────

def parse_chord_chart(text: str, dialect: SourceFormat | str) -> ChordChartDocument:
    """
    Route *text* to the parser for an already-classified dialect.

    Raises:
        ValueError: If *dialect* is not one of the supported chart dialects.
    """
    if dialect == "chordpro":
        return parse_chordpro(text)
    if dialect == "ultimate-guitar":
        return parse_ultimate_guitar(text)
    if dialect == "chords-over-words":
        return parse_chords_over_words(text)
    supported = ", ".join(sorted(SUPPORTED_DIALECTS))
    raise ValueError(f"Unsupported chart dialect '{dialect}'. Use one of: {supported}.")
