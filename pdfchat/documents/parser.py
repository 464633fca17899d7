"""PDF text extraction backed by PyMuPDF."""

import fitz  # PyMuPDF

from pdfchat.documents.models import PageText, ParsedDocument
from pdfchat.exceptions import DocumentError, ErrorCode
from pdfchat.logging_config import get_logger

logger = get_logger(__name__)

PDF_MAGIC = b"%PDF-"


def is_pdf(raw_bytes: bytes) -> bool:
    """Check the PDF header within the first kilobyte.

    Some writers emit a few junk bytes before the header, which readers
    tolerate, so the magic does not have to sit at offset 0.
    """
    return PDF_MAGIC in raw_bytes[:1024]


class PDFParser:
    """Extracts per-page text from PDF bytes.

    No OCR: scanned pages without a text layer come back empty.
    """

    def parse(self, raw_bytes: bytes, source_id: str) -> ParsedDocument:
        """Extract the text of every page.

        Args:
            raw_bytes: PDF file content.
            source_id: Identity recorded on the result.

        Returns:
            ParsedDocument with pages in reading order.

        Raises:
            DocumentError: UNSUPPORTED_FORMAT for non-PDF input,
                DOCUMENT_PARSE_ERROR if the PDF cannot be read.
        """
        if not is_pdf(raw_bytes):
            raise DocumentError(
                f"Not a PDF document: {source_id}",
                code=ErrorCode.UNSUPPORTED_FORMAT,
                details={"source": source_id},
            )

        try:
            doc = fitz.open(stream=raw_bytes, filetype="pdf")
        except (RuntimeError, ValueError) as e:  # FileDataError is a RuntimeError
            raise DocumentError(
                f"Failed to open PDF: {source_id}",
                code=ErrorCode.DOCUMENT_PARSE_ERROR,
                details={"source": source_id, "error": str(e)},
            ) from e

        try:
            if doc.needs_pass:
                raise DocumentError(
                    f"PDF is password protected: {source_id}",
                    code=ErrorCode.DOCUMENT_PARSE_ERROR,
                    details={"source": source_id},
                )

            pages = [
                PageText(number=index + 1, text=page.get_text("text"))
                for index, page in enumerate(doc)
            ]
            title = (doc.metadata or {}).get("title") or None
        finally:
            doc.close()

        logger.debug(
            f"Parsed {len(pages)} pages",
            extra={"source": source_id, "pages": len(pages)},
        )
        return ParsedDocument(source_id=source_id, pages=pages, title=title)
