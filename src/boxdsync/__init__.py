"""Import movie-tracking exports into a folder of Markdown notes."""

__version__ = "0.1.0"
