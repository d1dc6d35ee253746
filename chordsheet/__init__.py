"""chordsheet: MusicXML and text chord charts to ChordPro."""

__version__ = "0.1.0"
