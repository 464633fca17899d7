"""Document data models."""

from pydantic import BaseModel, Field


class PageText(BaseModel):
    """Extracted text of a single PDF page.

    Attributes:
        number: 1-based page number.
        text: Text in reading order as returned by the PDF library.
    """

    number: int = Field(ge=1, description="1-based page number")
    text: str = Field(description="Extracted page text")


class ParsedDocument(BaseModel):
    """A PDF after text extraction.

    Attributes:
        source_id: Logical document identity (usually the file name).
        pages: Pages in reading order.
        title: Title from the PDF metadata, if any.
    """

    source_id: str = Field(description="Logical document identity")
    pages: list[PageText] = Field(default_factory=list, description="Pages in order")
    title: str | None = Field(default=None, description="PDF metadata title")

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def has_text(self) -> bool:
        return any(page.text.strip() for page in self.pages)


class Chunk(BaseModel):
    """A chunk of document text, the unit of embedding and retrieval.

    Attributes:
        text: The chunk text, trimmed of surrounding whitespace.
        source_id: Source document identity.
        chunk_index: Position of the chunk in the document, from 0.
        page: Page the chunk was cut from.
        start_char: Start offset into that page's text.
        end_char: End offset into that page's text (exclusive).
    """

    text: str = Field(min_length=1, description="Chunk text")
    source_id: str = Field(description="Source document identity")
    chunk_index: int = Field(ge=0, description="Position within the source")
    page: int = Field(default=1, ge=1, description="Page number")
    start_char: int = Field(default=0, ge=0, description="Start offset in page text")
    end_char: int = Field(default=0, ge=0, description="End offset in page text")
