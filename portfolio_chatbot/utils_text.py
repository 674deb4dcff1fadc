"""Text chunking and title helpers."""

from __future__ import annotations

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

PARAGRAPH_MIN_CHARS = 50
SENTENCE_MIN_CHARS = 20

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE_END = re.compile(r"[.!?]+")


def chunk_text(
    text: str | None,
    *,
    paragraph_min_chars: int = PARAGRAPH_MIN_CHARS,
    sentence_min_chars: int = SENTENCE_MIN_CHARS,
) -> List[str]:
    """Split document text into retrievable chunks.

    Paragraphs (blank-line separated) longer than ``paragraph_min_chars`` are
    kept as chunks. When no paragraph qualifies, the text is split on sentence
    terminators instead and sentences longer than ``sentence_min_chars`` are
    kept.

    Args:
        text: Raw document text.
        paragraph_min_chars: Exclusive lower bound on paragraph length.
        sentence_min_chars: Exclusive lower bound on sentence length.

    Returns:
        list[str]: Stripped, non-empty chunks in document order. Empty when the
        text holds nothing long enough to keep.
    """
    base_text = (text or "").strip()
    if not base_text:
        return []

    chunks = _keep_longer_than(_PARAGRAPH_BREAK.split(base_text), paragraph_min_chars)
    if chunks:
        logger.debug("Split text into %s paragraph chunks.", len(chunks))
        return chunks

    chunks = _keep_longer_than(_SENTENCE_END.split(base_text), sentence_min_chars)
    logger.debug("No paragraph qualified; fell back to %s sentence chunks.", len(chunks))
    return chunks


def _keep_longer_than(pieces: List[str], min_chars: int) -> List[str]:
    stripped = (piece.strip() for piece in pieces)
    return [piece for piece in stripped if len(piece) > min_chars]


def clean_title(title: str) -> str:
    """Return a display-friendly title with collapsed whitespace."""
    t = (title or "").strip()
    if not t:
        return t
    t = re.sub(r"\s{2,}", " ", t).strip(" \t-–·:")
    return t or title.strip()
