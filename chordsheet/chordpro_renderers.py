"""Renderer implementations for the two ChordPro body styles."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from chordsheet.score_models import (
    ChordBracketStyle,
    ConvertOptions,
    LyricEvent,
    MeasureData,
    ResolvedFormatMode,
)

DEFAULT_GRID_SLOTS = 4
EMPTY_SLOT = "."

_WHITESPACE_RE = re.compile(r"\s+")


def format_chord_prefix(chords: Sequence[str], style: ChordBracketStyle) -> str:
    """``["C", "G"]`` -> ``[C][G]`` (separate) or ``[C G]`` (combined)."""
    if not chords:
        return ""
    if style == "combined":
        return f"[{' '.join(chords)}]"
    return "".join(f"[{chord}]" for chord in chords)


def emit_wrapped_bars(measure_texts: Sequence[str], options: ConvertOptions) -> list[str]:
    """Group measure texts into lines, framed as ``| m1 | m2 |`` with pipe barlines."""
    if not measure_texts:
        return []

    chunk_size = len(measure_texts) if options.wrap_policy == "no-wrap" else options.bars_per_line
    lines: list[str] = []
    for start in range(0, len(measure_texts), chunk_size):
        chunk = measure_texts[start : start + chunk_size]
        if options.barline_style == "pipes":
            lines.append(f"| {' | '.join(chunk)} |")
        else:
            lines.append("  ".join(chunk))
    return lines


def attach_chords(measure: MeasureData, lyrics: Sequence[LyricEvent]) -> list[list[str]]:
    """
    Chords to print before each syllable of *lyrics* (offset-sorted).

    A syllable gets the harmonies that became active since the previous
    syllable; when none did, the active chord carries forward onto it.
    Harmonies after the last syllable attach to that last syllable.
    """
    attached: list[list[str]] = []
    fresh: list[bool] = []
    active: list[str] = []
    index = 0
    harmonies = measure.harmonies

    for lyric in lyrics:
        new: list[str] = []
        while index < len(harmonies) and harmonies[index].offset_divisions <= lyric.offset_divisions:
            new.append(harmonies[index].chord_text)
            index += 1
        if new:
            active = new
        attached.append(list(active))
        fresh.append(bool(new))

    trailing = [harmony.chord_text for harmony in harmonies[index:]]
    if trailing and attached:
        if fresh[-1]:
            attached[-1].extend(trailing)
        else:
            attached[-1] = trailing
    return attached


def render_measure_lyrics(
    measure: MeasureData,
    lyrics: Sequence[LyricEvent],
    options: ConvertOptions,
) -> str:
    """Render one measure of one verse as bracketed chords before syllables."""
    if not lyrics:
        return f"[{measure.harmonies[0].chord_text}]" if measure.harmonies else ""

    tokens: list[str] = []
    for lyric, chords in zip(lyrics, attach_chords(measure, lyrics)):
        prefix = format_chord_prefix(chords, options.chord_bracket_style)
        suffix = "-" if lyric.syllabic in ("begin", "middle") else ""
        tokens.append(f"{prefix}{lyric.text}{suffix}")

    joined = " ".join(tokens)
    if options.normalize_whitespace:
        return _WHITESPACE_RE.sub(" ", joined).strip()
    return joined


def resolve_grid_slots(options: ConvertOptions, time_signature: str | None) -> int:
    """Explicit override, else the time signature numerator, else 4."""
    if options.grid_slots_per_measure is not None:
        return options.grid_slots_per_measure
    if not time_signature:
        return DEFAULT_GRID_SLOTS
    beats = time_signature.split("/", maxsplit=1)[0].strip()
    if not beats.isdigit() or int(beats) <= 0:
        return DEFAULT_GRID_SLOTS
    return int(beats)


class ChordProRenderer(ABC):
    """Abstract renderer producing the ChordPro body for a measure sequence."""

    @property
    @abstractmethod
    def mode(self) -> ResolvedFormatMode:
        """Format mode this renderer implements."""

    @abstractmethod
    def render(
        self,
        measures: Sequence[MeasureData],
        *,
        options: ConvertOptions,
        verses: Sequence[str] = (),
        time_signature: str | None = None,
    ) -> tuple[list[str], list[str]]:
        """Return ``(body_lines, warnings)``."""


class LyricsInlineRenderer(ChordProRenderer):
    """Interleave bracketed chords with lyric syllables, one block per verse."""

    @property
    def mode(self) -> ResolvedFormatMode:
        return "lyrics-inline"

    def render(
        self,
        measures: Sequence[MeasureData],
        *,
        options: ConvertOptions,
        verses: Sequence[str] = (),
        time_signature: str | None = None,
    ) -> tuple[list[str], list[str]]:
        verse_keys = list(verses) or ["1"]
        wrap_verses = len(verse_keys) > 1
        lines: list[str] = []

        for position, verse in enumerate(verse_keys):
            measure_texts = [
                render_measure_lyrics(measure, measure.lyrics_by_verse.get(verse, ()), options)
                for measure in measures
            ]
            if wrap_verses:
                lines.append("{start_of_verse}")
                lines.append(f"{{comment: Verse {verse}}}")
            lines.extend(emit_wrapped_bars(measure_texts, options))
            if wrap_verses:
                lines.append("{end_of_verse}")
                if position < len(verse_keys) - 1:
                    lines.append("")

        return lines, []


class GridRenderer(ChordProRenderer):
    """Quantize each measure's harmonies into equal slots inside a grid section."""

    @property
    def mode(self) -> ResolvedFormatMode:
        return "grid-only"

    def render_measure(self, measure: MeasureData, slots: int) -> tuple[str, int]:
        """Return the measure's slot text and the number of dropped (colliding) chords."""
        cells = [EMPTY_SLOT] * slots
        collisions = 0
        duration = measure.duration_divisions
        for harmony in measure.harmonies:
            raw = harmony.offset_divisions * slots // duration if duration > 0 else 0
            slot = max(0, min(slots - 1, raw))
            if cells[slot] != EMPTY_SLOT:
                collisions += 1
                continue
            cells[slot] = f"[{harmony.chord_text}]"
        return " ".join(cells), collisions

    def render(
        self,
        measures: Sequence[MeasureData],
        *,
        options: ConvertOptions,
        verses: Sequence[str] = (),
        time_signature: str | None = None,
    ) -> tuple[list[str], list[str]]:
        if not measures:
            return [], []
        slots = resolve_grid_slots(options, time_signature)
        multi_chord_measures = 0
        total_collisions = 0
        measure_texts: list[str] = []

        for measure in measures:
            if len(measure.harmonies) > 1:
                multi_chord_measures += 1
            text, collisions = self.render_measure(measure, slots)
            total_collisions += collisions
            measure_texts.append(text)

        warnings: list[str] = []
        if multi_chord_measures:
            warnings.append(
                f"Grid quantized to {slots} slots/measure; "
                f"{multi_chord_measures} measures contain multiple chord changes."
            )
        if total_collisions:
            warnings.append(
                f"Chord collisions within same slot: {total_collisions}. "
                "Consider higher grid resolution."
            )

        lines = ["{start_of_grid}", *emit_wrapped_bars(measure_texts, options), "{end_of_grid}"]
        return lines, warnings
