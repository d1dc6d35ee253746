"""
One-shot typed deserialisation of MusicXML text.

The XML tree is walked once and turned into parts -> measures -> ordered
measure elements. Everything downstream works on these dataclasses and never
touches the XML tree again. Both ``score-partwise`` and ``score-timewise``
documents produce the same partwise shape.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Final, cast

from chordsheet.score_models import Syllabic

logger = logging.getLogger(__name__)

#: MusicXML harmony ``kind`` values -> chord-symbol suffix.
KIND_SUFFIX: Final[dict[str, str]] = {
    "major": "",
    "minor": "m",
    "augmented": "aug",
    "diminished": "dim",
    "dominant": "7",
    "major-seventh": "maj7",
    "minor-seventh": "m7",
    "diminished-seventh": "dim7",
    "augmented-seventh": "aug7",
    "half-diminished": "m7b5",
    "major-minor": "m(maj7)",
    "major-sixth": "6",
    "minor-sixth": "m6",
    "dominant-ninth": "9",
    "major-ninth": "maj9",
    "minor-ninth": "m9",
    "suspended-second": "sus2",
    "suspended-fourth": "sus4",
    "power": "5",
}


@dataclass(frozen=True)
class LyricElement:
    number: str
    text: str
    syllabic: Syllabic | None
    extend: bool


@dataclass(frozen=True)
class NoteElement:
    duration: int
    is_chord_tone: bool
    lyrics: tuple[LyricElement, ...]


@dataclass(frozen=True)
class BackupElement:
    duration: int


@dataclass(frozen=True)
class ForwardElement:
    duration: int


@dataclass(frozen=True)
class HarmonyElement:
    """A chord symbol; ``offset`` is in quarter notes when the score gives one."""

    chord_text: str
    offset: float | None


@dataclass(frozen=True)
class AttributesElement:
    divisions: int | None


@dataclass(frozen=True)
class BarlineElement:
    repeat_directions: tuple[str, ...]
    endings: tuple[int, ...]


MeasureElement = (
    NoteElement | BackupElement | ForwardElement | HarmonyElement | AttributesElement | BarlineElement
)


@dataclass(frozen=True)
class Measure:
    number: str | None
    elements: tuple[MeasureElement, ...]


@dataclass(frozen=True)
class Part:
    part_id: str | None
    measures: tuple[Measure, ...]
    lyric_text_count: int


@dataclass(frozen=True)
class KeySignature:
    fifths: int
    mode: str | None


@dataclass(frozen=True)
class TimeSignature:
    beats: str
    beat_type: str

    def __str__(self) -> str:
        return f"{self.beats}/{self.beat_type}"


@dataclass(frozen=True)
class ScoreXml:
    title: str | None
    composer: str | None
    key: KeySignature | None
    time: TimeSignature | None
    parts: tuple[Part, ...]


# ------------------------------------------------------------------
# Small helpers
# ------------------------------------------------------------------

def _text(element: ET.Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    stripped = element.text.strip()
    return stripped or None


def parse_int(text: str | None, default: int) -> int:
    """Lenient integer parsing: ``"480"`` and ``"480.0"`` both give 480."""
    if text is None:
        return default
    try:
        return int(text.strip())
    except ValueError:
        try:
            return int(float(text))
        except ValueError:
            return default


def _parse_float(text: str | None) -> float | None:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def accidental_from_alter(alter: int) -> str:
    if alter > 0:
        return "#" * alter
    if alter < 0:
        return "b" * -alter
    return ""


# ------------------------------------------------------------------
# Element readers
# ------------------------------------------------------------------

def harmony_to_chord_text(harmony: ET.Element) -> str:
    """
    Build ``root[accidental][suffix][/bass]`` for a ``<harmony>`` element.

    An explicit ``kind/@text`` always wins over the kind lookup table. Returns
    an empty string when the harmony has no root step.
    """
    root_step = _text(harmony.find("root/root-step"))
    if not root_step:
        return ""
    root = root_step + accidental_from_alter(parse_int(_text(harmony.find("root/root-alter")), 0))

    kind = harmony.find("kind")
    kind_value = _text(kind) or "major"
    display = (kind.get("text") or "").strip() if kind is not None else ""
    suffix = display or KIND_SUFFIX.get(kind_value, kind_value)

    bass_step = _text(harmony.find("bass/bass-step"))
    if bass_step:
        bass = bass_step + accidental_from_alter(parse_int(_text(harmony.find("bass/bass-alter")), 0))
        return f"{root}{suffix}/{bass}"
    return f"{root}{suffix}"


def _read_lyric(lyric: ET.Element) -> LyricElement | None:
    text = _text(lyric.find("text"))
    if not text:
        return None
    syllabic = _text(lyric.find("syllabic"))
    return LyricElement(
        number=(lyric.get("number") or "").strip() or "1",
        text=text,
        syllabic=cast(Syllabic, syllabic) if syllabic in ("single", "begin", "middle", "end") else None,
        extend=lyric.find("extend") is not None,
    )


def _read_endings(barline: ET.Element) -> tuple[int, ...]:
    numbers: set[int] = set()
    for ending in barline.findall("ending"):
        for token in (ending.get("number") or "").split(","):
            token = token.strip()
            if token.isdigit():
                numbers.add(int(token))
    return tuple(sorted(numbers))


def _read_measure_element(child: ET.Element) -> MeasureElement | None:
    tag = child.tag
    if tag == "note":
        lyrics = tuple(
            lyric for lyric in (_read_lyric(el) for el in child.findall("lyric")) if lyric is not None
        )
        return NoteElement(
            duration=parse_int(_text(child.find("duration")), 0),
            is_chord_tone=child.find("chord") is not None,
            lyrics=lyrics,
        )
    if tag == "backup":
        return BackupElement(duration=parse_int(_text(child.find("duration")), 0))
    if tag == "forward":
        return ForwardElement(duration=parse_int(_text(child.find("duration")), 0))
    if tag == "harmony":
        chord_text = harmony_to_chord_text(child)
        if not chord_text:
            return None
        return HarmonyElement(chord_text=chord_text, offset=_parse_float(_text(child.find("offset"))))
    if tag == "attributes":
        divisions = parse_int(_text(child.find("divisions")), 0)
        return AttributesElement(divisions=divisions if divisions > 0 else None)
    if tag == "barline":
        directions = tuple(
            (repeat.get("direction") or "").strip() for repeat in child.findall("repeat")
        )
        return BarlineElement(repeat_directions=directions, endings=_read_endings(child))
    return None


def _read_measure(measure: ET.Element) -> Measure:
    elements = tuple(
        element for element in (_read_measure_element(child) for child in measure) if element is not None
    )
    return Measure(number=measure.get("number"), elements=elements)


def _count_lyric_texts(container: ET.Element) -> int:
    return len(container.findall(".//lyric/text"))


def _read_partwise(root: ET.Element) -> tuple[Part, ...]:
    return tuple(
        Part(
            part_id=part.get("id"),
            measures=tuple(_read_measure(measure) for measure in part.findall("measure")),
            lyric_text_count=_count_lyric_texts(part),
        )
        for part in root.findall("part")
    )


def _read_timewise(root: ET.Element) -> tuple[Part, ...]:
    """
    Regroup ``measure > part`` into ``part > measure`` keeping first-seen part order.

    Every part gets one slot per timewise measure; a part absent from a
    measure gets an empty ``Measure`` there so measure indexes stay aligned.
    """
    measures = root.findall("measure")
    measures_by_part: dict[str | None, list[Measure]] = {}
    lyric_counts: dict[str | None, int] = {}
    for position, measure in enumerate(measures):
        number = measure.get("number")
        for part in measure.findall("part"):
            part_id = part.get("id")
            slots = measures_by_part.setdefault(part_id, [])
            while len(slots) < position:
                slots.append(Measure(number=measures[len(slots)].get("number"), elements=()))
            if len(slots) > position:
                continue
            slots.append(Measure(number=number, elements=_read_measure(part).elements))
            lyric_counts[part_id] = lyric_counts.get(part_id, 0) + _count_lyric_texts(part)
    for slots in measures_by_part.values():
        while len(slots) < len(measures):
            slots.append(Measure(number=measures[len(slots)].get("number"), elements=()))
    return tuple(
        Part(part_id=part_id, measures=tuple(slots), lyric_text_count=lyric_counts[part_id])
        for part_id, slots in measures_by_part.items()
    )


def _read_key(root: ET.Element) -> KeySignature | None:
    for key in root.iter("key"):
        fifths = _text(key.find("fifths"))
        if fifths is None:
            continue
        try:
            value = int(fifths)
        except ValueError:
            return None
        return KeySignature(fifths=value, mode=_text(key.find("mode")))
    return None


def _read_time(root: ET.Element) -> TimeSignature | None:
    time = next(root.iter("time"), None)
    if time is None:
        return None
    beats = _text(time.find("beats"))
    beat_type = _text(time.find("beat-type"))
    if not beats or not beat_type:
        return None
    return TimeSignature(beats=beats, beat_type=beat_type)


def _read_composer(root: ET.Element) -> str | None:
    for creator in root.findall("identification/creator"):
        if (creator.get("type") or "").strip().lower() == "composer":
            return _text(creator)
    return None


def read_musicxml(xml_text: str) -> ScoreXml:
    """
    Parse MusicXML text into a ``ScoreXml``.

    Raises:
        xml.etree.ElementTree.ParseError: If the text is not well-formed XML.
    """
    root = ET.fromstring(xml_text)

    if root.tag == "score-timewise":
        parts = _read_timewise(root)
    elif root.tag == "score-partwise":
        parts = _read_partwise(root)
    else:
        logger.debug("Unexpected MusicXML root element <%s>; no parts read", root.tag)
        parts = ()

    title = _text(root.find("work/work-title")) or _text(root.find("movement-title"))
    return ScoreXml(
        title=title,
        composer=_read_composer(root),
        key=_read_key(root),
        time=_read_time(root),
        parts=parts,
    )
