"""VadCondense: remove silent stretches from audio files."""

__version__ = "0.1.0"
