"""Serialize a ChordChartDocument back into canonical ChordPro text."""

from __future__ import annotations

from typing import Final

from chordsheet.chart_models import (
    ChartLine,
    ChartSection,
    ChordChartDocument,
    ChordToken,
    CommentToken,
    LyricToken,
)
from chordsheet.transposer import transpose_chord

#: Metadata fields in the order their directives are written.
METADATA_FIELDS: Final[tuple[str, ...]] = (
    "title",
    "artist",
    "subtitle",
    "key",
    "capo",
    "tempo",
    "time",
)


def _directive_name(section: ChartSection) -> str:
    return section.type.replace("-", "_")


def serialize_line(line: ChartLine, steps: int = 0) -> str:
    parts: list[str] = []
    for token in line.tokens:
        if isinstance(token, ChordToken):
            parts.append(f"[{transpose_chord(token.text, steps)}]")
        elif isinstance(token, LyricToken):
            parts.append(token.text)
        elif isinstance(token, CommentToken):
            parts.append(f"{{comment: {token.text}}}")
    return "".join(parts)


def serialize_chart(document: ChordChartDocument, steps: int = 0) -> str:
    """
    Write *document* as ChordPro, optionally transposed by *steps* semitones.

    Metadata directives come first (the key is transposed too). Each section is
    preceded by a blank line and, unless its type is ``unknown``, wrapped in
    ``{start_of_<type>}`` / ``{end_of_<type>}`` directives. The document itself
    is never modified.
    """
    lines: list[str] = []

    for name in METADATA_FIELDS:
        value = getattr(document, name)
        if not value:
            continue
        if name == "key":
            value = transpose_chord(value, steps)
        lines.append(f"{{{name}: {value}}}")

    for section in document.sections:
        lines.append("")
        wrapped = section.type != "unknown"
        if wrapped:
            start = f"start_of_{_directive_name(section)}"
            lines.append(f"{{{start}: {section.label}}}" if section.label else f"{{{start}}}")
        lines.extend(serialize_line(line, steps) for line in section.lines)
        if wrapped:
            lines.append(f"{{end_of_{_directive_name(section)}}}")

    return "\n".join(lines).lstrip()
