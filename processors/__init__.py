"""Text processors module."""

from .ca_detector import CADetector
from .text_normalizer import TextNormalizer

__all__ = ["CADetector", "TextNormalizer"]
