"""
Document Parser
----------------
Turns one file into an ordered list of text chunks for ingestion.

  - PDF   : pypdf text extraction, page by page
  - Text  : .txt / .md read as a single page

Each page is split into token-bounded windows (tiktoken cl100k_base, the
encoder used by text-embedding-3-*). Windows break on whitespace and repeat
roughly `chunk_overlap` tokens of the previous window, so adjacent chunks
share a word run at their boundary.

A page with no extractable text still yields one empty chunk. Ingestion
drops empty chunks but keeps the page's position in the chunk numbering.
"""
from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

import tiktoken
from loguru import logger
from pypdf import PdfReader

from docqa.errors import ParseError
from docqa.utils.helpers import clean_text

CHUNK_SIZE = 1000         # tokens per chunk
CHUNK_OVERLAP = 100       # tokens repeated across a chunk boundary

PDF_SUFFIXES = {".pdf"}
TEXT_SUFFIXES = {".txt", ".md", ".markdown"}

_WORD_RE = re.compile(r"\S+")


@lru_cache(maxsize=1)
def _encoder() -> tiktoken.Encoding:
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Count BPE tokens using the cl100k_base encoder."""
    return len(_encoder().encode(text))


class DocumentParser:
    """
    Usage:
        parser = DocumentParser(chunk_size=1000, chunk_overlap=100)
        chunks = parser.load_chunks("doc/jane_resume.pdf")
    """

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        token_counter: Optional[Callable[[str], int]] = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._count = token_counter or count_tokens

    def load_chunks(self, path: str | Path) -> list[str]:
        """
        Parse a file into ordered chunk texts.

        Raises:
            ParseError: unsupported format, unreadable file or broken PDF.
        """
        path = Path(path)
        suffix = path.suffix.lower()

        if suffix in PDF_SUFFIXES:
            pages = self._read_pdf(path)
        elif suffix in TEXT_SUFFIXES:
            pages = [self._read_text(path)]
        else:
            raise ParseError(f"Unsupported document format: {path.name}")

        chunks: list[str] = []
        for page in pages:
            page_chunks = self.split(clean_text(page))
            chunks.extend(page_chunks or [""])

        logger.debug(f"[Parser] {path.name} | {len(pages)} page(s) -> {len(chunks)} chunk(s)")
        return chunks

    # --- Readers --------------------------------------------------------------

    @staticmethod
    def _read_pdf(path: Path) -> list[str]:
        # Malformed PDFs surface as arbitrary errors (TypeError, KeyError, ...)
        try:
            reader = PdfReader(str(path))
            return [page.extract_text() or "" for page in reader.pages]
        except Exception as exc:
            raise ParseError(f"Could not extract text from {path.name}: {exc}") from exc

    @staticmethod
    def _read_text(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ParseError(f"Could not read {path.name}: {exc}") from exc

    # --- Windowing ------------------------------------------------------------

    def split(self, text: str) -> list[str]:
        """Split text into whitespace-aligned, token-bounded, overlapping windows."""
        spans = [m.span() for m in _WORD_RE.finditer(text)]
        if not spans:
            return []
        costs = [self._count(text[s:e]) for s, e in spans]

        windows: list[str] = []
        start = 0
        while start < len(spans):
            end, used = start, 0
            # A single word larger than chunk_size still gets its own window
            while end < len(spans) and (end == start or used + costs[end] <= self.chunk_size):
                used += costs[end]
                end += 1
            windows.append(text[spans[start][0]: spans[end - 1][1]])
            if end >= len(spans):
                break

            back, carried = end, 0
            while back > start + 1 and carried + costs[back - 1] <= self.chunk_overlap:
                back -= 1
                carried += costs[back]
            start = back
        return windows
