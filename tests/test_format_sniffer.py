"""Unit tests for format sniffing precedence."""

import pytest

from chordsheet.format_sniffer import (
    as_source_format,
    is_chord_chart_format,
    is_musicxml_format,
    sniff_format,
)


def test_zip_magic_is_compressed_musicxml() -> None:
    assert sniff_format(b"PK\x03\x04rest-of-archive", "song.mxl") == "compressed-musicxml"


def test_score_partwise_root_is_musicxml() -> None:
    data = b'<?xml version="1.0"?>\n<score-partwise version="4.0"></score-partwise>'
    assert sniff_format(data, "anything.txt") == "musicxml"


def test_score_timewise_root_is_musicxml() -> None:
    assert sniff_format(b"<score-timewise></score-timewise>") == "musicxml"


def test_xml_prolog_with_musicxml_extension() -> None:
    data = b'<?xml version="1.0"?>\n<!-- root comes later -->'
    assert sniff_format(data, "song.musicxml") == "musicxml"
    assert sniff_format(data, "song.txt") == "unknown"


def test_directive_wins_over_section_header() -> None:
    data = b"{title: X}\n[Verse 1]\n[C]Hello"
    assert sniff_format(data) == "chordpro"


def test_section_header_is_ultimate_guitar() -> None:
    data = b"[Verse 1]\n[C]Hello [G]world\n[Chorus]\n[F]Sing"
    assert sniff_format(data) == "ultimate-guitar"


def test_inline_bracket_chords_without_headers_is_chordpro() -> None:
    assert sniff_format(b"Hello [Am]darkness my old [G]friend") == "chordpro"


def test_chords_over_words_heuristic() -> None:
    data = b"G   C   D\nHello my friend\nEm  C   G\nGoodbye old friend\n"
    assert sniff_format(data) == "chords-over-words"


def test_single_chord_lines_do_not_count() -> None:
    data = b"G\nHello my friend\nC\nGoodbye old friend\n"
    assert sniff_format(data) == "unknown"


def test_extension_fallback() -> None:
    assert sniff_format(b"just words", "song.cho") == "chordpro"
    assert sniff_format(b"just words", "SONG.CRD") == "chordpro"
    assert sniff_format(b"just words", "song.txt") == "unknown"


def test_only_first_two_kilobytes_are_inspected() -> None:
    data = b"plain words\n" * 200 + b"{title: Late}"
    assert sniff_format(data) == "unknown"


def test_format_helpers() -> None:
    assert is_musicxml_format("compressed-musicxml")
    assert not is_musicxml_format("chordpro")
    assert is_chord_chart_format("chords-over-words")
    assert not is_chord_chart_format("unknown")


@pytest.mark.parametrize(
    ("detected", "expected"),
    [
        ("chordpro", "chordpro"),
        ("ultimate-guitar", "ultimate-guitar"),
        ("chords-over-words", "chords-over-words"),
        ("musicxml", None),
        ("unknown", None),
    ],
)
def test_as_source_format(detected: str, expected: str | None) -> None:
    assert as_source_format(detected) == expected  # type: ignore[arg-type]
