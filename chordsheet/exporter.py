"""ChordProExporter: classifies an input file and converts it to ChordPro text."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Final, cast

from chordsheet.chart_parsers import parse_chord_chart
from chordsheet.chart_serializer import serialize_chart
from chordsheet.converter import UNTITLED, convert_musicxml_to_chordpro
from chordsheet.format_sniffer import (
    DetectedFormat,
    as_source_format,
    is_chord_chart_format,
    is_musicxml_format,
    sniff_format,
)
from chordsheet.score_models import ConverterDiagnostics, ConvertOptions
from chordsheet.transposer import transpose_document

logger = logging.getLogger(__name__)

SUPPORTED_INPUT_FORMATS: Final[set[str]] = {
    "auto",
    "musicxml",
    "chordpro",
    "ultimate-guitar",
    "chords-over-words",
}

NO_CHORDS_WARNING: Final[str] = "no chords found"


@dataclass(frozen=True)
class ExportResult:
    """ChordPro text plus what the caller needs to report on the conversion."""

    chordpro: str
    detected_format: DetectedFormat
    warnings: list[str] = field(default_factory=list)
    diagnostics: ConverterDiagnostics | None = None
    error: str | None = None


class ChordProExporter:
    """
    Convert MusicXML scores and text chord charts into ChordPro.

    Supported inputs:
    - ``musicxml``: converted by the MusicXML engine with *options*.
    - ``chordpro`` / ``ultimate-guitar`` / ``chords-over-words``: parsed into a
      chart document and re-serialized, transposed by *transpose* semitones.

    With ``input_format="auto"`` the format is sniffed from the file content.
    """

    def __init__(
        self,
        options: ConvertOptions | None = None,
        input_format: str = "auto",
        transpose: int = 0,
    ) -> None:
        normalized = input_format.strip().lower()
        if normalized not in SUPPORTED_INPUT_FORMATS:
            supported = ", ".join(sorted(SUPPORTED_INPUT_FORMATS))
            raise ValueError(f"Unsupported input format '{input_format}'. Use one of: {supported}.")
        self.options = options or ConvertOptions()
        self.input_format = normalized
        self.transpose = transpose

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _detect(self, data: bytes, filename: str) -> DetectedFormat:
        if self.input_format != "auto":
            return cast(DetectedFormat, self.input_format)
        detected = sniff_format(data, filename)
        logger.debug("Sniffed %s as %s", filename or "<input>", detected)
        return detected

    def _convert_score(self, data: bytes, detected: DetectedFormat, filename: str) -> ExportResult:
        if detected == "compressed-musicxml":
            raise ValueError("Compressed MusicXML (.mxl) must be extracted before conversion.")
        text = data.decode("utf-8-sig", errors="replace")
        result = convert_musicxml_to_chordpro(text, self.options, filename=filename or None)
        return ExportResult(
            chordpro=result.chordpro,
            detected_format=detected,
            warnings=result.warnings,
            diagnostics=result.diagnostics,
            error=result.error,
        )

    def _convert_chart(self, data: bytes, detected: DetectedFormat) -> ExportResult:
        dialect = as_source_format(detected)
        if dialect is None:
            raise ValueError(f"Not a chord chart format: {detected}.")
        text = data.decode("utf-8-sig", errors="replace")
        document = transpose_document(parse_chord_chart(text, dialect), self.transpose)
        warnings = [] if document.chords else [NO_CHORDS_WARNING]
        return ExportResult(
            chordpro=serialize_chart(document) or UNTITLED,
            detected_format=detected,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, data: bytes, filename: str = "") -> ExportResult:
        """
        Convert raw file content into ChordPro.

        Raises:
            ValueError: If the content is a compressed archive or of unknown format.
        """
        detected = self._detect(data, filename)

        if is_musicxml_format(detected):
            return self._convert_score(data, detected, filename)
        if is_chord_chart_format(detected):
            return self._convert_chart(data, detected)
        raise ValueError(f"Could not determine the format of '{filename or '<input>'}'.")

    def export(self, input_path: str, output_path: str) -> ExportResult:
        """
        Convert the file at *input_path* and write the ChordPro text to *output_path*.

        Raises:
            ValueError: If the input cannot be classified or converted.
            OSError: If a file cannot be read or written.
        """
        with open(input_path, "rb") as fh:
            data = fh.read()

        result = self.convert(data, filename=input_path)

        with open(output_path, "w", encoding="utf-8") as fh:
            fh.write(result.chordpro + "\n")
        return result
