"""
Solana Contract Address (CA) detector.
Scans normalized text for base58 runs and keeps the ones that are real,
canonically encoded Solana public keys.
"""

import re
from typing import AbstractSet, Iterable, List

from solders.pubkey import Pubkey

from utils.logger import get_logger

logger = get_logger(__name__)


class CADetector:
    """Detects Solana contract addresses in text."""

    # Solana addresses are base58 encoded, 32-44 characters
    # Base58 alphabet: 123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz
    # (no 0, O, I, l to avoid confusion)
    SOLANA_CA_PATTERN = re.compile(r"[1-9A-HJ-NP-Za-km-z]{32,44}")

    # Longest address plus one
    WINDOW_SIZE = 45

    @classmethod
    def scan(cls, text: str) -> List[str]:
        """
        Slide a fixed window over the text and collect every base58 run.

        Overlapping windows report the same address more than once; callers
        that care de-duplicate later.

        Args:
            text: Normalized text

        Returns:
            Candidates in scan order
        """
        candidates: List[str] = []

        for start in range(len(text)):
            window = text[start:start + cls.WINDOW_SIZE]
            candidates.extend(cls.SOLANA_CA_PATTERN.findall(window))

        return candidates

    @staticmethod
    def is_valid_address(candidate: str) -> bool:
        """
        Check that the candidate decodes to a 32-byte public key and
        re-encodes to exactly the same string.

        Args:
            candidate: Base58 candidate string

        Returns:
            True if it is a canonical Solana address
        """
        try:
            pubkey = Pubkey.from_string(candidate)
        except Exception:
            # Wrong length or characters outside the alphabet
            return False
        return str(pubkey) == candidate

    @staticmethod
    def is_blocked(candidate: str, block_list: AbstractSet[str]) -> bool:
        """Case-insensitive block list check. ``block_list`` must be lowercased."""
        return candidate.lower() in block_list

    @classmethod
    def filter_valid(cls, candidates: Iterable[str], block_list: AbstractSet[str]) -> List[str]:
        """
        Keep valid, non-blocked candidates in scan order (duplicates kept).

        Args:
            candidates: Scanner output
            block_list: Lowercased addresses that are never traded

        Returns:
            Validated addresses
        """
        valid: List[str] = []

        for candidate in candidates:
            if not cls.is_valid_address(candidate):
                continue
            if cls.is_blocked(candidate, block_list):
                logger.info(f"Skipping blocked address: {candidate}")
                continue
            valid.append(candidate)

        return valid
