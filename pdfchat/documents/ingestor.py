"""Document ingestor: PDF bytes in, ordered chunks out."""

from pdfchat.documents.chunker import ChunkerConfig, TextChunker
from pdfchat.documents.models import Chunk, ParsedDocument
from pdfchat.documents.parser import PDFParser
from pdfchat.exceptions import DocumentError, ErrorCode
from pdfchat.logging_config import get_logger

logger = get_logger(__name__)


class DocumentIngestor:
    """Turns raw PDF bytes into chunks with stable indices.

    Pure transformation: no network calls and no state between calls, so
    the same bytes under the same source id always give the same chunks.
    """

    def __init__(
        self,
        parser: PDFParser | None = None,
        chunker: TextChunker | None = None,
    ) -> None:
        self._parser = parser or PDFParser()
        self._chunker = chunker or TextChunker()

    @classmethod
    def from_sizes(cls, chunk_size: int, chunk_overlap: int) -> "DocumentIngestor":
        """Build an ingestor with the given chunk geometry."""
        config = ChunkerConfig(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
        return cls(chunker=TextChunker(config))

    def parse(self, raw_bytes: bytes, source_id: str) -> ParsedDocument:
        """Extract page text, rejecting documents with none.

        Raises:
            DocumentError: If the input is not a readable PDF or holds no text.
        """
        document = self._parser.parse(raw_bytes, source_id)

        if not document.has_text:
            raise DocumentError(
                f"No extractable text found in {source_id}",
                code=ErrorCode.EMPTY_DOCUMENT,
                details={"source": source_id, "pages": document.page_count},
            )
        return document

    def chunk(self, document: ParsedDocument) -> list[Chunk]:
        """Split parsed pages into chunks in reading order."""
        chunks = self._chunker.chunk(document)

        logger.info(
            f"Split {document.source_id} into {len(chunks)} chunks",
            extra={
                "source": document.source_id,
                "pages": document.page_count,
                "chunks": len(chunks),
            },
        )
        return chunks

    def ingest(self, raw_bytes: bytes, source_id: str) -> list[Chunk]:
        """Parse and chunk a PDF.

        Args:
            raw_bytes: PDF file content.
            source_id: Logical document identity, recorded on every chunk.

        Returns:
            Non-empty list of chunks in reading order.

        Raises:
            DocumentError: If the input is not a readable PDF or holds no text.
        """
        return self.chunk(self.parse(raw_bytes, source_id))
