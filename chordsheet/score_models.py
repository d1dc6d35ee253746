"""Data models for the MusicXML -> ChordPro conversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Literal, get_args

Syllabic = Literal["single", "begin", "middle", "end"]

FormatMode = Literal["auto", "lyrics-inline", "grid-only"]
ResolvedFormatMode = Literal["lyrics-inline", "grid-only"]
RepeatStrategy = Literal["none", "simple-unroll"]
ChordBracketStyle = Literal["separate", "combined"]
BarlineStyle = Literal["pipes", "none"]
WrapPolicy = Literal["bars-per-line", "no-wrap"]
EmitPolicy = Literal["emit-if-known", "omit"]
MetadataPolicy = Literal["emit", "omit"]

DEFAULT_BARS_PER_LINE: Final[int] = 4


@dataclass(frozen=True)
class HarmonyEvent:
    """A resolved chord symbol at an offset (in divisions) within a measure."""

    measure_index: int
    offset_divisions: int
    chord_text: str


@dataclass(frozen=True)
class LyricEvent:
    """One lyric syllable, positioned at the onset of the note carrying it."""

    verse: str
    measure_index: int
    offset_divisions: int
    text: str
    syllabic: Syllabic | None = None
    extend: bool = False


@dataclass(frozen=True)
class MeasureData:
    """
    Everything the renderers need to know about one measure.

    ``harmonies`` holds one event per distinct (offset, chord text) across all
    parts, sorted by offset. Each ``lyrics_by_verse`` list is offset-sorted.
    """

    measure_index: int
    duration_divisions: int
    harmonies: tuple[HarmonyEvent, ...] = ()
    lyrics_by_verse: dict[str, tuple[LyricEvent, ...]] = field(default_factory=dict)
    repeat_start: bool = False
    repeat_end: bool = False
    endings: tuple[int, ...] = ()


def _check_choice(name: str, value: str, alias: object) -> None:
    allowed = get_args(alias)
    if value not in allowed:
        choices = ", ".join(allowed)
        raise ValueError(f"Unsupported {name} '{value}'. Use one of: {choices}.")


@dataclass(frozen=True)
class ConvertOptions:
    """
    Conversion settings. Every field has a default; derive variants with
    ``dataclasses.replace``.

    Raises:
        ValueError: On construction, if any setting is outside its allowed set.
    """

    bars_per_line: int = DEFAULT_BARS_PER_LINE
    grid_slots_per_measure: int | None = None
    barline_style: BarlineStyle = "pipes"
    wrap_policy: WrapPolicy = "bars-per-line"
    chord_bracket_style: ChordBracketStyle = "separate"
    format_mode: FormatMode = "auto"
    repeat_strategy: RepeatStrategy = "none"
    annotate_unexpanded_repeats: bool = True
    metadata_policy: MetadataPolicy = "emit"
    key_policy: EmitPolicy = "emit-if-known"
    time_policy: EmitPolicy = "emit-if-known"
    normalize_whitespace: bool = True

    def __post_init__(self) -> None:
        if self.bars_per_line < 1:
            raise ValueError("bars_per_line must be at least 1.")
        if self.grid_slots_per_measure is not None and self.grid_slots_per_measure < 1:
            raise ValueError("grid_slots_per_measure must be at least 1 when given.")
        _check_choice("barline style", self.barline_style, BarlineStyle)
        _check_choice("wrap policy", self.wrap_policy, WrapPolicy)
        _check_choice("chord bracket style", self.chord_bracket_style, ChordBracketStyle)
        _check_choice("format mode", self.format_mode, FormatMode)
        _check_choice("repeat strategy", self.repeat_strategy, RepeatStrategy)
        _check_choice("metadata policy", self.metadata_policy, MetadataPolicy)
        _check_choice("key policy", self.key_policy, EmitPolicy)
        _check_choice("time policy", self.time_policy, EmitPolicy)


@dataclass
class ConverterDiagnostics:
    """Facts gathered during a conversion, reported to the caller."""

    filename: str | None = None
    is_compressed: bool = False
    parts_count: int = 0
    selected_lyric_part_id: str | None = None
    title: str | None = None
    composer: str | None = None
    key: str | None = None
    time: str | None = None
    measures_count: int = 0
    verses_detected: list[str] = field(default_factory=list)
    has_any_lyrics: bool = False
    has_any_harmony: bool = False
    repeat_markers_found: int = 0
    endings_found: int = 0
    bars_per_line: int = DEFAULT_BARS_PER_LINE
    format_mode_resolved: ResolvedFormatMode = "grid-only"


@dataclass(frozen=True)
class ConvertResult:
    """ChordPro text (never empty), ordered warnings, diagnostics and an optional error."""

    chordpro: str
    warnings: list[str]
    diagnostics: ConverterDiagnostics
    error: str | None = None
