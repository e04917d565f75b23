"""redcul - fill in missing FLAC/MP3 variants of a catalogue release."""

__version__ = "0.3.0"
