"""encoreconv - Encore to MusicXML batch converter."""

__version__ = "0.1.0"
