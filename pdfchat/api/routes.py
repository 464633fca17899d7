"""API routes for uploading PDFs and asking questions."""

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pdfchat.api.dependencies import get_indexing_pipeline, get_rag_pipeline
from pdfchat.exceptions import DocumentError, ErrorCode, ValidationError
from pdfchat.indexing.models import LocalIndexingResult
from pdfchat.indexing.pipeline import PDF_SUFFIX, IndexingPipeline
from pdfchat.logging_config import get_logger
from pdfchat.rag.models import RAGQuery, SourceAttribution
from pdfchat.rag.pipeline import RAGPipeline

logger = get_logger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

router = APIRouter(tags=["PDF Chat"])


class UploadResponse(BaseModel):
    """Response from a PDF upload."""

    message: str = Field(description="Human-readable outcome")
    success: bool = Field(default=True, description="Whether indexing succeeded")
    chunks: int = Field(description="Number of chunks created")


class ChatRequest(BaseModel):
    """Request body for a question."""

    question: str = Field(description="Question about the uploaded PDFs")
    source: str | None = Field(default=None, description="Only search this document")


class ChatResponse(BaseModel):
    """Response to a question."""

    answer: str = Field(description="Answer text")
    success: bool = Field(default=True, description="Whether the question was handled")
    state: str = Field(description="Terminal pipeline state")
    sources: list[SourceAttribution] = Field(
        default_factory=list,
        description="Chunks the answer was built from",
    )


class ProcessLocalResponse(BaseModel):
    """Response from indexing the local PDF folder."""

    message: str = Field(description="Human-readable outcome")
    success: bool = Field(default=True, description="Whether any PDF was indexed")
    results: list[LocalIndexingResult] = Field(description="Per-file outcomes")


def _is_pdf_upload(file: UploadFile) -> bool:
    if file.content_type == PDF_CONTENT_TYPE:
        return True
    return bool(file.filename) and file.filename.lower().endswith(PDF_SUFFIX)


@router.post("/upload", response_model=UploadResponse)
async def upload_endpoint(
    file: UploadFile | None = File(default=None),
    pipeline: IndexingPipeline = Depends(get_indexing_pipeline),
) -> UploadResponse:
    """Index an uploaded PDF, replacing any earlier upload with the same name."""
    if file is None or not file.filename:
        raise ValidationError("No file received.")

    if not _is_pdf_upload(file):
        raise DocumentError(
            "Please upload a PDF file.",
            code=ErrorCode.UNSUPPORTED_FORMAT,
            details={"filename": file.filename, "content_type": file.content_type},
        )

    raw_bytes = await file.read()
    result = await pipeline.index_document(raw_bytes, file.filename)

    return UploadResponse(
        message=f"PDF processed successfully. Created {result.chunks} chunks.",
        chunks=result.chunks,
    )


@router.post("/chat", response_model=ChatResponse)
async def chat_endpoint(
    request: ChatRequest,
    pipeline: RAGPipeline = Depends(get_rag_pipeline),
) -> ChatResponse:
    """Answer a question from the indexed PDFs."""
    response = await pipeline.query(
        RAGQuery(question=request.question, source=request.source)
    )
    return ChatResponse(
        answer=response.answer,
        state=response.state.value,
        sources=response.sources,
    )


@router.post("/process-local-pdfs", response_model=ProcessLocalResponse)
async def process_local_pdfs_endpoint(
    pipeline: IndexingPipeline = Depends(get_indexing_pipeline),
) -> Any:
    """Index every PDF in the configured local folder."""
    results = await pipeline.index_folder()
    succeeded = [r for r in results if r.success]

    if not succeeded:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "No PDFs were processed successfully",
                "success": False,
                "details": [r.model_dump() for r in results],
            },
        )

    return ProcessLocalResponse(
        message=f"Successfully processed {len(succeeded)} PDFs",
        results=results,
    )
