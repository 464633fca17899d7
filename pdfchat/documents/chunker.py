"""Overlapping text chunking for extracted PDF pages."""

import re
from typing import Any

from pydantic import BaseModel, Field

from pdfchat.documents.models import Chunk, ParsedDocument

# Break preferences, strongest first: paragraph, sentence or line end, word.
PARAGRAPH_BREAK = re.compile(r"\n[ \t\r\f\v]*\n\s*")
SENTENCE_BREAK = re.compile(r"[.!?][\"')\]]*\s+|\n\s*")
WORD_BREAK = re.compile(r"\s+")

BREAK_PATTERNS = (PARAGRAPH_BREAK, SENTENCE_BREAK, WORD_BREAK)


class ChunkerConfig(BaseModel):
    """Configuration for text chunking.

    Attributes:
        chunk_size: Maximum size of each chunk in characters.
        chunk_overlap: Characters repeated at the start of the next chunk.
    """

    chunk_size: int = Field(default=1000, ge=50, description="Maximum chunk size")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between chunks")

    def model_post_init(self, __context: Any) -> None:
        """Validate overlap is less than chunk size."""
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be less than chunk_size")


class TextChunker:
    """Split text into overlapping windows cut at natural breakpoints.

    Each window is at most ``chunk_size`` characters. The cut is placed at
    the last paragraph break in the second half of the window, else the
    last sentence or line end, else the last whitespace, else exactly at
    ``chunk_size``. The next window starts ``chunk_overlap`` characters
    before the cut, moved forward to the next word start so chunks do not
    open mid-word.
    """

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        self.config = config or ChunkerConfig()

    def split_text(self, text: str) -> list[tuple[int, int]]:
        """Compute chunk spans over ``text``.

        Returns:
            ``(start, end)`` offsets in order; ``text[start:end]`` is the
            chunk with surrounding whitespace already excluded.
        """
        spans: list[tuple[int, int]] = []
        length = len(text)
        start = _skip_whitespace(text, 0)

        while start < length:
            cut = self._find_cut(text, start)

            end = cut
            while end > start and text[end - 1].isspace():
                end -= 1
            spans.append((start, end))

            if cut >= length or not text[cut:].strip():
                break
            start = self._next_start(text, start, cut)

        return spans

    def chunk(self, document: ParsedDocument) -> list[Chunk]:
        """Split every page of a document.

        Chunks never cross a page boundary. ``chunk_index`` counts across
        the whole document, so it is contiguous from 0 in reading order.
        """
        chunks: list[Chunk] = []

        for page in document.pages:
            for start, end in self.split_text(page.text):
                chunks.append(
                    Chunk(
                        text=page.text[start:end],
                        source_id=document.source_id,
                        chunk_index=len(chunks),
                        page=page.number,
                        start_char=start,
                        end_char=end,
                    )
                )

        return chunks

    def _find_cut(self, text: str, start: int) -> int:
        size = self.config.chunk_size
        limit = start + size
        if limit >= len(text):
            return len(text)

        # Breaks must leave room for the overlap, or the next window would
        # not move forward.
        floor = start + max(size // 2, self.config.chunk_overlap + 1)

        for pattern in BREAK_PATTERNS:
            cut = None
            for match in pattern.finditer(text, floor, limit):
                cut = match.end()
            if cut is not None:
                return cut

        return limit

    def _next_start(self, text: str, start: int, cut: int) -> int:
        position = cut - self.config.chunk_overlap

        if not text[position - 1].isspace() and not text[position].isspace():
            match = WORD_BREAK.search(text, position, cut)
            if match:
                position = match.end()

        position = _skip_whitespace(text, position)
        return max(position, start + 1)


def _skip_whitespace(text: str, position: int) -> int:
    while position < len(text) and text[position].isspace():
        position += 1
    return position
