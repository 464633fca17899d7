"""Document processing module."""

from pdfchat.documents.chunker import ChunkerConfig, TextChunker
from pdfchat.documents.ingestor import DocumentIngestor
from pdfchat.documents.models import Chunk, PageText, ParsedDocument
from pdfchat.documents.parser import PDFParser, is_pdf

__all__ = [
    "Chunk",
    "ChunkerConfig",
    "DocumentIngestor",
    "PDFParser",
    "PageText",
    "ParsedDocument",
    "TextChunker",
    "is_pdf",
]
