"""Indexing pipeline: PDF bytes to replaced records in the vector index."""

import asyncio
from pathlib import Path

from pdfchat.config import EmbeddingSettings, IndexingSettings, ReplaceStrategy, get_settings
from pdfchat.documents.ingestor import DocumentIngestor
from pdfchat.embeddings.retry import embed_with_settings
from pdfchat.embeddings.service import EmbeddingService
from pdfchat.exceptions import ErrorCode, IndexingError, PDFChatError, ValidationError, VectorStoreError
from pdfchat.indexing.models import IndexingResult, IndexingState, LocalIndexingResult
from pdfchat.logging_config import get_logger
from pdfchat.observability.metrics import track_document_indexed
from pdfchat.vectorstore.models import VectorRecord
from pdfchat.vectorstore.service import VectorStore

logger = get_logger(__name__)

PDF_SUFFIX = ".pdf"


class IndexingPipeline:
    """Parses, chunks, embeds and stores a document, replacing any prior version.

    Two replace strategies are supported:

    - ``delete_then_upsert``: best-effort delete of the source's records,
      then upsert. A failed delete is logged and ingestion continues.
    - ``upsert_then_prune``: upsert the new records, then delete the
      source's records that were not rewritten, so the source is never
      absent from the index.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_store: VectorStore,
        ingestor: DocumentIngestor | None = None,
        indexing_settings: IndexingSettings | None = None,
        embedding_settings: EmbeddingSettings | None = None,
    ) -> None:
        settings = get_settings()
        self._embedding_service = embedding_service
        self._vector_store = vector_store
        self._indexing_settings = indexing_settings or settings.indexing
        self._embedding_settings = embedding_settings or settings.embedding
        self._ingestor = ingestor or DocumentIngestor.from_sizes(
            chunk_size=self._indexing_settings.chunk_size,
            chunk_overlap=self._indexing_settings.chunk_overlap,
        )

    @property
    def replace_strategy(self) -> ReplaceStrategy:
        return self._indexing_settings.replace_strategy

    async def index_document(self, raw_bytes: bytes, source_id: str) -> IndexingResult:
        """Index one PDF under ``source_id``.

        Args:
            raw_bytes: PDF file content.
            source_id: Document name; records of a previous upload with the
                same name are replaced.

        Returns:
            Result with the number of chunks written.

        Raises:
            ValidationError: If the bytes or the source id are empty.
            PDFChatError: If parsing, embedding or storage fails.
        """
        if not raw_bytes:
            raise ValidationError("Uploaded file is empty")
        if not source_id or not source_id.strip():
            raise ValidationError("Document name is required")

        state = IndexingState.RECEIVED
        self._log_state(source_id, state)

        try:
            document = self._ingestor.parse(raw_bytes, source_id)
            state = IndexingState.PARSED
            self._log_state(source_id, state, pages=document.page_count)

            chunks = self._ingestor.chunk(document)
            state = IndexingState.CHUNKED
            self._log_state(source_id, state, chunks=len(chunks))

            embeddings = await embed_with_settings(
                self._embedding_service,
                [chunk.text for chunk in chunks],
                self._embedding_settings,
            )
            if len(embeddings) != len(chunks):
                raise IndexingError(
                    f"Expected {len(chunks)} embeddings, got {len(embeddings)}",
                    code=ErrorCode.INDEXING_ERROR,
                    details={"source": source_id},
                )
            records = [
                VectorRecord.from_chunk(chunk, result.embedding)
                for chunk, result in zip(chunks, embeddings)
            ]
            state = IndexingState.EMBEDDED
            self._log_state(source_id, state)

            await self._replace(source_id, records)
            state = IndexingState.REPLACED
            self._log_state(source_id, state, strategy=self.replace_strategy.value)
        except PDFChatError as e:
            logger.error(
                f"Indexing {source_id} failed: {e.message}",
                extra={
                    "source": source_id,
                    "state": IndexingState.FAILED.value,
                    "failed_after": state.value,
                    "code": e.code.value,
                },
            )
            track_document_indexed(0, success=False)
            raise

        track_document_indexed(len(records))
        self._log_state(source_id, IndexingState.DONE, chunks=len(records))
        return IndexingResult(source=source_id, chunks=len(records))

    async def _replace(self, source_id: str, records: list[VectorRecord]) -> None:
        if self.replace_strategy is ReplaceStrategy.UPSERT_THEN_PRUNE:
            await self._vector_store.upsert(records)
            await self._vector_store.delete_stale(source_id, [r.id for r in records])
            return

        try:
            await self._vector_store.delete_by_source(source_id)
        except VectorStoreError as e:
            logger.warning(
                f"Could not delete previous records of {source_id}, continuing: {e.message}",
                extra={"source": source_id},
            )
        await self._vector_store.upsert(records)

    async def index_file(self, path: Path) -> LocalIndexingResult:
        """Index one file from disk, using its name as the source id.

        Failures are reported in the result instead of raised.
        """
        try:
            raw_bytes = await asyncio.to_thread(path.read_bytes)
            result = await self.index_document(raw_bytes, path.name)
        except PDFChatError as e:
            return LocalIndexingResult(success=False, file_name=path.name, error=e.message)
        except OSError as e:
            logger.error(f"Could not read {path}: {e}")
            return LocalIndexingResult(success=False, file_name=path.name, error=str(e))

        return LocalIndexingResult(success=True, file_name=path.name, chunks=result.chunks)

    async def index_folder(self, folder: Path | str | None = None) -> list[LocalIndexingResult]:
        """Index every PDF directly inside ``folder``, one file at a time.

        Files are matched by a case-insensitive ``.pdf`` suffix and processed
        in name order. A failing file does not stop the batch.

        Args:
            folder: Folder to scan; defaults to ``INDEXING_LOCAL_PDF_DIR``.

        Returns:
            One result per file, or a single failed result when the folder
            is missing or holds no PDFs.
        """
        folder = Path(folder or self._indexing_settings.local_pdf_dir)

        if not folder.is_dir():
            logger.warning(f"PDF folder not found: {folder}")
            return [LocalIndexingResult(success=False, error=f"Folder not found: {folder}")]

        files = sorted(
            (p for p in folder.iterdir() if p.is_file() and p.suffix.lower() == PDF_SUFFIX),
            key=lambda p: p.name,
        )
        if not files:
            logger.warning(f"No PDF files found in {folder}")
            return [LocalIndexingResult(success=False, error=f"No PDF files found in {folder}")]

        results = []
        for path in files:
            results.append(await self.index_file(path))

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            f"Indexed {succeeded}/{len(results)} PDFs from {folder}",
            extra={"folder": str(folder), "succeeded": succeeded, "total": len(results)},
        )
        return results

    def _log_state(self, source_id: str, state: IndexingState, **fields: object) -> None:
        logger.info(
            f"Indexing {source_id}: {state.value}",
            extra={"source": source_id, "state": state.value, **fields},
        )
