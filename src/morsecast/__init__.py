"""morsecast - Morse code playback, audio export and light transmission."""

__version__ = "0.1.0"
