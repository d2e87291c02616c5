"""
Chunk boundary overlap detection.

Chunkers usually repeat a few words at the end of one chunk at the start of
the next. find_text_overlap() recovers that shared word run so ingestion can
record it as chunk metadata.
"""
from __future__ import annotations

MIN_OVERLAP_CHARS = 20    # characters


def find_text_overlap(prev_text: str, next_text: str) -> str:
    """
    Longest run of words that ends prev_text and starts next_text.

    Both texts are split on whitespace and compared word by word, joined
    with single spaces. Every window size is checked, so the longest match
    wins even when a shorter window also matches.

    >>> find_text_overlap("the quick brown fox", "brown fox jumps")
    'brown fox'
    """
    prev_words = prev_text.split()
    next_words = next_text.split()

    best = ""
    for k in range(1, min(len(prev_words), len(next_words)) + 1):
        ending = " ".join(prev_words[-k:])
        beginning = " ".join(next_words[:k])
        if ending == beginning and len(ending) > len(best):
            best = ending
    return best


def significant_overlap(prev_text: str, next_text: str) -> str:
    """find_text_overlap(), or "" when the overlap is MIN_OVERLAP_CHARS or shorter."""
    overlap = find_text_overlap(prev_text, next_text)
    return overlap if len(overlap) > MIN_OVERLAP_CHARS else ""
