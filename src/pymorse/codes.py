"""Map text to International Morse code."""

from types import MappingProxyType
from typing import NamedTuple

MORSE_CODE_MAP = MappingProxyType({
    # Letters
    "A": ".-", "B": "-...", "C": "-.-.", "D": "-..", "E": ".",
    "F": "..-.", "G": "--.", "H": "....", "I": "..", "J": ".---",
    "K": "-.-", "L": ".-..", "M": "--", "N": "-.", "O": "---",
    "P": ".--.", "Q": "--.-", "R": ".-.", "S": "...", "T": "-",
    "U": "..-", "V": "...-", "W": ".--", "X": "-..-", "Y": "-.--",
    "Z": "--..",
    # Digits
    "0": "-----", "1": ".----", "2": "..---", "3": "...--", "4": "....-",
    "5": ".....", "6": "-....", "7": "--...", "8": "---..", "9": "----.",
    # Punctuation
    ".": ".-.-.-", ",": "--..--", "?": "..--..", "'": ".----.",
    "!": "-.-.--", "/": "-..-.", "(": "-.--.", ")": "-.--.-",
    "&": ".-...", ":": "---...", ";": "-.-.-.", "=": "-...-",
    "+": ".-.-.", "-": "-....-", "_": "..--.-", '"': ".-..-.",
    "$": "...-..-", "@": ".--.-.",
})

LETTER_SEPARATOR = " "
WORD_SEPARATOR = " / "


class ValidationResult(NamedTuple):
    is_valid: bool
    unsupported_chars: list[str]


def text_to_morse(text: str) -> str:
    """Convert text to a Morse symbol string.

    Letters are separated by a single space and words by " / ".
    Characters without a Morse code are dropped.

    Example: "SOS" -> "... --- ..."
    """
    if not text or not text.strip():
        return ""

    morse_words = []
    for word in text.upper().split(" "):
        letters = [MORSE_CODE_MAP[char] for char in word if char in MORSE_CODE_MAP]
        if letters:
            morse_words.append(LETTER_SEPARATOR.join(letters))

    return WORD_SEPARATOR.join(morse_words)


def validate_text(text: str) -> ValidationResult:
    """Report the distinct characters of *text* that have no Morse code.

    Matching is case-insensitive and spaces are always allowed. Characters
    are listed in the order they first appear.
    """
    unsupported: list[str] = []
    for char in text.upper():
        if char != " " and char not in MORSE_CODE_MAP and char not in unsupported:
            unsupported.append(char)

    return ValidationResult(is_valid=not unsupported, unsupported_chars=unsupported)


def supported_characters() -> list[str]:
    """All characters that can be encoded."""
    return list(MORSE_CODE_MAP)
