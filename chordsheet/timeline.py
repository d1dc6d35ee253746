"""Per-measure timeline of harmonies, lyrics and repeat markers."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from chordsheet.musicxml_reader import (
    AttributesElement,
    BackupElement,
    BarlineElement,
    ForwardElement,
    HarmonyElement,
    Measure,
    NoteElement,
    Part,
)
from chordsheet.score_models import HarmonyEvent, LyricEvent, MeasureData, RepeatStrategy

logger = logging.getLogger(__name__)

UNSUPPORTED_ENDINGS_WARNING = "unsupported endings"


def select_lyric_part(parts: Sequence[Part]) -> int | None:
    """
    Index of the part with the most lyric text elements.

    Ties keep the earliest part; a score without parts gives None.
    """
    best_index: int | None = None
    best_count = -1
    for index, part in enumerate(parts):
        if part.lyric_text_count > best_count:
            best_index = index
            best_count = part.lyric_text_count
    return best_index


def _measure_divisions(measure: Measure, current: int) -> int:
    for element in measure.elements:
        if isinstance(element, AttributesElement) and element.divisions:
            current = element.divisions
    return current


def _collect_harmonies(
    parts: Sequence[Part],
    part_divisions: list[int],
    measure_index: int,
    divisions: int,
) -> tuple[HarmonyEvent, ...]:
    """
    Gather the harmonies of every part at *measure_index*.

    Offsets are expressed in *divisions* (the lyric part's unit). An explicit
    ``offset`` is taken as quarter notes; otherwise the harmony sits at the
    running cursor of its own part. Identical (offset, chord) pairs found in
    several parts are kept once.
    """
    seen: dict[tuple[int, str], HarmonyEvent] = {}

    for part_index, part in enumerate(parts):
        if measure_index >= len(part.measures):
            continue
        measure = part.measures[measure_index]
        part_divisions[part_index] = _measure_divisions(measure, part_divisions[part_index])
        scale = divisions / part_divisions[part_index]

        cursor = 0
        for element in measure.elements:
            if isinstance(element, BackupElement):
                cursor = max(0, cursor - element.duration)
            elif isinstance(element, ForwardElement):
                cursor += element.duration
            elif isinstance(element, NoteElement):
                if not element.is_chord_tone:
                    cursor += element.duration
            elif isinstance(element, HarmonyElement):
                if element.offset is not None:
                    offset = max(0, round(element.offset * divisions))
                else:
                    offset = round(cursor * scale)
                key = (offset, element.chord_text)
                if key not in seen:
                    seen[key] = HarmonyEvent(
                        measure_index=measure_index,
                        offset_divisions=offset,
                        chord_text=element.chord_text,
                    )

    return tuple(sorted(seen.values(), key=lambda event: event.offset_divisions))


def build_timeline(parts: Sequence[Part], lyric_part_index: int | None) -> list[MeasureData]:
    """
    Build one ``MeasureData`` per measure of the lyric part.

    The lyric part fixes the measure count and order. Within each of its
    measures a cursor (in divisions) follows ``backup``/``forward``/``note``;
    lyrics land at their note's onset. Repeat and ending markers come from the
    lyric part's barlines only.
    """
    if lyric_part_index is None or not parts:
        return []

    lyric_part = parts[lyric_part_index]
    divisions = 1
    part_divisions = [1] * len(parts)
    timeline: list[MeasureData] = []

    for measure_index, measure in enumerate(lyric_part.measures):
        divisions = _measure_divisions(measure, divisions)

        cursor = 0
        onset = 0
        duration = 0
        repeat_start = False
        repeat_end = False
        endings: set[int] = set()
        lyrics: dict[str, list[LyricEvent]] = {}

        for element in measure.elements:
            if isinstance(element, BackupElement):
                cursor = max(0, cursor - element.duration)
            elif isinstance(element, ForwardElement):
                cursor += element.duration
                duration = max(duration, cursor)
            elif isinstance(element, NoteElement):
                if not element.is_chord_tone:
                    onset = cursor
                    cursor += element.duration
                    duration = max(duration, cursor)
                for lyric in element.lyrics:
                    lyrics.setdefault(lyric.number, []).append(
                        LyricEvent(
                            verse=lyric.number,
                            measure_index=measure_index,
                            offset_divisions=onset,
                            text=lyric.text,
                            syllabic=lyric.syllabic,
                            extend=lyric.extend,
                        )
                    )
            elif isinstance(element, BarlineElement):
                repeat_start = repeat_start or "forward" in element.repeat_directions
                repeat_end = repeat_end or "backward" in element.repeat_directions
                endings.update(element.endings)

        timeline.append(
            MeasureData(
                measure_index=measure_index,
                duration_divisions=duration,
                harmonies=_collect_harmonies(parts, part_divisions, measure_index, divisions),
                lyrics_by_verse={
                    verse: tuple(sorted(events, key=lambda event: event.offset_divisions))
                    for verse, events in lyrics.items()
                },
                repeat_start=repeat_start,
                repeat_end=repeat_end,
                endings=tuple(sorted(endings)),
            )
        )

    logger.debug("Built timeline: %d measure(s) from part %s", len(timeline), lyric_part.part_id)
    return timeline


def resolve_measure_order(
    measures: Sequence[MeasureData],
    strategy: RepeatStrategy,
) -> tuple[list[int], list[str]]:
    """
    Playback order of *measures* as positions into the sequence, plus warnings.

    ``simple-unroll`` plays the first closed repeat region (first repeat-start
    through the first later repeat-end) twice. Scores with alternate endings
    are left in written order with a warning.
    """
    order = list(range(len(measures)))
    if strategy != "simple-unroll":
        return order, []

    if any(measure.endings for measure in measures):
        return order, [UNSUPPORTED_ENDINGS_WARNING]

    start = next((i for i, measure in enumerate(measures) if measure.repeat_start), None)
    if start is None:
        return order, []
    end = next((i for i in range(start + 1, len(measures)) if measures[i].repeat_end), None)
    if end is None:
        return order, []

    return order[: end + 1] + order[start : end + 1] + order[end + 1 :], []
