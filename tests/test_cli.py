"""Command-line tests driven through click's CliRunner."""

from click.testing import CliRunner

from chordsheet import __version__
from chordsheet.cli import main

MUSICXML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<score-partwise version="4.0">'
    '<part-list><score-part id="P1"/></part-list><part id="P1"><measure number="1">'
    "<attributes><divisions>1</divisions></attributes>"
    "<harmony><root><root-step>G</root-step></root><kind>major</kind></harmony>"
    "<note><pitch><step>G</step><octave>4</octave></pitch><duration>4</duration>"
    "<lyric><syllabic>single</syllabic><text>Go</text></lyric></note>"
    "</measure></part></score-partwise>"
)


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_sniff_prints_format(tmp_path) -> None:
    chart = tmp_path / "chart.txt"
    chart.write_text("[Chorus]\n[C]Sing\n", encoding="utf-8")
    result = CliRunner().invoke(main, ["sniff", str(chart)])
    assert result.exit_code == 0
    assert result.output.strip() == "ultimate-guitar"


def test_convert_to_stdout(tmp_path) -> None:
    score = tmp_path / "song.musicxml"
    score.write_text(MUSICXML, encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", str(score), "-o", "-"])
    assert result.exit_code == 0
    assert result.output.strip() == "| [G]Go |"


def test_convert_writes_default_output(tmp_path) -> None:
    score = tmp_path / "song.musicxml"
    score.write_text(MUSICXML, encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", str(score), "--mode", "grid-only"])
    assert result.exit_code == 0
    assert "Done!" in result.output
    written = (tmp_path / "song.cho").read_text(encoding="utf-8")
    assert written == "{start_of_grid}\n| [G] . . . |\n{end_of_grid}\n"


def test_convert_transposes_chart(tmp_path) -> None:
    chart = tmp_path / "chart.cho"
    chart.write_text("{key: G}\n[G]Hi [D]there\n", encoding="utf-8")
    target = tmp_path / "out.cho"
    result = CliRunner().invoke(main, ["convert", str(chart), "--transpose", "-2", "-o", str(target)])
    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "{key: F}\n\n[F]Hi [C]there\n"


def test_convert_unknown_input_fails(tmp_path) -> None:
    notes = tmp_path / "notes.txt"
    notes.write_text("nothing to see here", encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", str(notes), "-o", "-"])
    assert result.exit_code == 1
    assert "Could not determine the format" in result.output


def test_convert_broken_musicxml_exits_nonzero(tmp_path) -> None:
    score = tmp_path / "broken.musicxml"
    score.write_text("<score-partwise><part>", encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", str(score)])
    assert result.exit_code == 1
    assert "MusicXML parser error" in result.output
    assert (tmp_path / "broken.cho").exists()


def test_convert_rejects_bad_choice(tmp_path) -> None:
    score = tmp_path / "song.musicxml"
    score.write_text(MUSICXML, encoding="utf-8")
    result = CliRunner().invoke(main, ["convert", str(score), "--mode", "sideways"])
    assert result.exit_code == 2
