"""
Text normalizer for webhook notifications.
Folds compatibility characters and look-alike letters into plain Latin so
that addresses written with homoglyphs are still found by the scanner.
"""

import re
import unicodedata
from typing import Optional


class TextNormalizer:
    """Normalizes notification and OCR text before address scanning."""

    # Cyrillic and Greek letters that render like Latin ones
    HOMOGLYPHS = {
        # Cyrillic uppercase
        "А": "A",
        "В": "B",
        "С": "C",
        "Е": "E",
        "Н": "H",
        "І": "I",
        "Ј": "J",
        "К": "K",
        "М": "M",
        "О": "O",
        "Р": "P",
        "Ѕ": "S",
        "Т": "T",
        "Х": "X",
        "Ү": "Y",
        # Cyrillic lowercase
        "а": "a",
        "с": "c",
        "е": "e",
        "һ": "h",
        "і": "i",
        "ј": "j",
        "о": "o",
        "р": "p",
        "ѕ": "s",
        "х": "x",
        "у": "y",
        # Greek uppercase
        "Α": "A",
        "Β": "B",
        "Ε": "E",
        "Ζ": "Z",
        "Η": "H",
        "Ι": "I",
        "Κ": "K",
        "Μ": "M",
        "Ν": "N",
        "Ο": "O",
        "Ρ": "P",
        "Τ": "T",
        "Υ": "Y",
        "Χ": "X",
        # Greek lowercase
        "ο": "o",
        "ν": "v",
    }

    _TRANSLATION = str.maketrans(HOMOGLYPHS)

    WHITESPACE_PATTERN = re.compile(r"\s+")

    @classmethod
    def normalize(cls, text: Optional[str]) -> str:
        """
        Apply NFKC normalization, replace known homoglyphs, then apply NFKC
        once more so a substituted letter composes with any combining mark
        that follows it. Normalizing the result again leaves it unchanged.

        Args:
            text: Raw text (notification body or OCR output)

        Returns:
            Normalized text, empty string for empty input
        """
        if not text:
            return ""

        folded = unicodedata.normalize("NFKC", text).translate(cls._TRANSLATION)
        return unicodedata.normalize("NFKC", folded)

    @classmethod
    def combine(cls, full_text: Optional[str], text: Optional[str]) -> str:
        """
        Build the scan text from the notification's text fields.

        The ``text`` field carries tweet-catcher's OCR of the tweet, where an
        address may be split across lines, so all whitespace is dropped
        from it before joining.
        """
        squashed = cls.WHITESPACE_PATTERN.sub("", text or "")
        return cls.normalize(f"{full_text or ''} {squashed}")

    @classmethod
    def append(cls, combined: str, extra: Optional[str]) -> str:
        """Append a normalized fragment (e.g. image OCR text) to the scan text."""
        return f"{combined} {cls.normalize(extra)}"
