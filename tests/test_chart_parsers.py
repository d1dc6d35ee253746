"""Unit tests for the ChordPro, Ultimate Guitar and chords-over-words parsers."""

import pytest

from chordsheet.chart_models import ChartLine, ChordToken, CommentToken, LyricToken
from chordsheet.chart_parsers import (
    parse_bracket_line,
    parse_chord_chart,
    parse_chordpro,
    parse_chords_over_words,
    parse_ultimate_guitar,
    section_type_from_label,
)

CHORDPRO_SONG = """\
{title: Amazing Grace}
{artist: John Newton}
{key: G}
{capo: 2}
{tempo: 90}
{time: 3/4}

{start_of_verse: Verse 1}
A[G]mazing [G7]grace, how [C]sweet the [G]sound
{end_of_verse}

{start_of_chorus}
[D]Chorus line
{comment: Repeat x2}
{end_of_chorus}
"""


# ── ChordPro ───────────────────────────────────────────────────────────────────

def test_chordpro_metadata_directives() -> None:
    document = parse_chordpro(CHORDPRO_SONG)
    assert document.title == "Amazing Grace"
    assert document.artist == "John Newton"
    assert document.key == "G"
    assert document.capo == "2"
    assert document.tempo == "90"
    assert document.time == "3/4"
    assert document.source_format == "chordpro"


def test_chordpro_short_directive_names() -> None:
    document = parse_chordpro("{t: Short}\n{a: Someone}\n{st: Sub}")
    assert document.title == "Short"
    assert document.artist == "Someone"
    assert document.subtitle == "Sub"


def test_directive_last_wins() -> None:
    document = parse_chordpro("{title: A}\n{title: B}")
    assert document.title == "B"


def test_empty_section_is_dropped() -> None:
    document = parse_chordpro("{start_of_verse}\n{end_of_verse}")
    assert document.sections == ()


def test_sections_from_directives() -> None:
    document = parse_chordpro(CHORDPRO_SONG)
    assert [section.type for section in document.sections] == ["verse", "chorus"]
    assert document.sections[0].label == "Verse 1"
    assert document.sections[1].label is None


def test_inline_chords_tokenized_in_order() -> None:
    document = parse_chordpro(CHORDPRO_SONG)
    line = document.sections[0].lines[0]
    assert line.tokens == (
        LyricToken("A"),
        ChordToken("G"),
        LyricToken("mazing "),
        ChordToken("G7"),
        LyricToken("grace, how "),
        ChordToken("C"),
        LyricToken("sweet the "),
        ChordToken("G"),
        LyricToken("sound"),
    )


def test_comment_directive_is_standalone_line() -> None:
    document = parse_chordpro(CHORDPRO_SONG)
    chorus = document.sections[1]
    assert chorus.lines[1] == ChartLine(tokens=(CommentToken("Repeat x2"),))


def test_unknown_directives_are_ignored() -> None:
    document = parse_chordpro("{new_song}\n{x_custom: 1}\nHello")
    assert len(document.sections) == 1
    assert document.sections[0].lines[0].tokens == (LyricToken("Hello"),)


def test_percent_lines_are_skipped() -> None:
    document = parse_chordpro("% a source comment\n[C]Hi")
    assert document.chords == ["C"]
    assert len(document.sections[0].lines) == 1


def test_plain_text_line_is_single_lyric_token() -> None:
    document = parse_chordpro("Just some words")
    assert document.sections[0].lines[0].tokens == (LyricToken("Just some words"),)


def test_ug_header_opens_section() -> None:
    document = parse_chordpro("[Verse 1]\n[C]Hello\n[Chorus]\n[G]World")
    assert [(s.type, s.label) for s in document.sections] == [
        ("verse", "Verse 1"),
        ("chorus", "Chorus"),
    ]


def test_pre_chorus_header_classified_as_chorus_first() -> None:
    assert section_type_from_label("Pre-Chorus") == "chorus"


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Verse 2", "verse"),
        ("BRIDGE", "bridge"),
        ("Intro", "intro"),
        ("Outro", "outro"),
        ("Interlude", "interlude"),
        ("Guitar Solo", "solo"),
        ("Hook", "unknown"),
    ],
)
def test_section_type_from_label(label: str, expected: str) -> None:
    assert section_type_from_label(label) == expected


def test_crlf_line_endings() -> None:
    document = parse_chordpro("{title: X}\r\n[C]One\r\n[G]Two\r")
    assert document.title == "X"
    assert len(document.sections[0].lines) == 2


def test_text_before_first_bracket_kept() -> None:
    line = parse_bracket_line("Oh [C]yes")
    assert line.tokens == (LyricToken("Oh "), ChordToken("C"), LyricToken("yes"))


def test_chord_only_bracket_line() -> None:
    line = parse_bracket_line("[C] [G]")
    assert line.tokens == (ChordToken("C"), LyricToken(" "), ChordToken("G"))


def test_unclosed_bracket_text_is_kept() -> None:
    assert parse_bracket_line("Hello [world").tokens == (LyricToken("Hello "), LyricToken("[world"))
    assert parse_bracket_line("[C]Hi [there").tokens == (ChordToken("C"), LyricToken("Hi "), LyricToken("[there"))
    assert parse_bracket_line("[oops").tokens == (LyricToken("[oops"),)


# ── Ultimate Guitar ────────────────────────────────────────────────────────────

def test_ultimate_guitar_reuses_chordpro_parser() -> None:
    text = "[Intro]\n[Am] [F] [C] [G]\n\n[Verse 1]\n[Am]Some [F]words"
    document = parse_ultimate_guitar(text)
    assert document.source_format == "ultimate-guitar"
    assert [s.type for s in document.sections] == ["intro", "verse"]
    assert document.chords == ["Am", "F", "C", "G", "Am", "F"]


# ── Chords over words ──────────────────────────────────────────────────────────

def test_chords_over_words_pairs_chord_line_with_lyric_line() -> None:
    text = "G        C       D\nHello my darling friend\n"
    document = parse_chords_over_words(text)
    assert document.source_format == "chords-over-words"
    assert len(document.sections) == 1
    assert document.sections[0].type == "unknown"
    assert document.sections[0].lines[0].tokens == (
        ChordToken("G"),
        ChordToken("C"),
        ChordToken("D"),
        LyricToken("Hello my darling friend"),
    )


def test_chords_over_words_orphan_chord_line() -> None:
    text = "Am  F  C  G\nEm  D\nWords here"
    document = parse_chords_over_words(text)
    lines = document.sections[0].lines
    assert lines[0].tokens == (ChordToken("Am"), ChordToken("F"), ChordToken("C"), ChordToken("G"))
    assert lines[1].tokens == (ChordToken("Em"), ChordToken("D"), LyricToken("Words here"))


def test_chords_over_words_plain_lines_and_blank_gap() -> None:
    text = "My Song Title\n\nG   D\n\nlonely lyric"
    document = parse_chords_over_words(text)
    lines = document.sections[0].lines
    assert lines[0].tokens == (LyricToken("My Song Title"),)
    assert lines[1].tokens == (ChordToken("G"), ChordToken("D"))
    assert lines[2].tokens == (LyricToken("lonely lyric"),)


def test_chords_over_words_empty_text_has_no_sections() -> None:
    assert parse_chords_over_words("\n\n  \n").sections == ()


# ── Dispatch ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("dialect", ["chordpro", "ultimate-guitar", "chords-over-words"])
def test_dispatch_sets_source_format(dialect: str) -> None:
    assert parse_chord_chart("[C]Hi", dialect).source_format == dialect


def test_dispatch_rejects_unknown_dialect() -> None:
    with pytest.raises(ValueError, match="Unsupported chart dialect"):
        parse_chord_chart("text", "musicxml")
