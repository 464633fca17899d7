#!/usr/bin/env python
"""Index a folder of PDFs into the vector store.

Usage:
    python -m scripts.index_pdfs --folder pdfs --output summary.json

Runs the same pipeline as ``POST /process-local-pdfs`` without starting
the API server. Exits non-zero when no PDF was indexed.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pdfchat.api.dependencies import ServiceContainer
from pdfchat.config import get_settings
from pdfchat.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def index_folder(folder: Path | None, output_path: Path | None = None) -> bool:
    """Index every PDF in ``folder`` and print a summary.

    Args:
        folder: Folder to scan; defaults to ``INDEXING_LOCAL_PDF_DIR``.
        output_path: Optional path to save the per-file results as JSON.

    Returns:
        True if at least one PDF was indexed.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)
    settings.validate_required()

    services = ServiceContainer.from_settings(settings)
    try:
        await services.startup()
        results = await services.indexing_pipeline.index_folder(folder)
        stats = await services.vector_store.stats()
    finally:
        await services.close()

    succeeded = [r for r in results if r.success]

    print("\n" + "=" * 60)
    print("INDEXING SUMMARY")
    print("=" * 60)
    print(f"Folder: {folder or settings.indexing.local_pdf_dir}")
    print(f"Collection: {settings.qdrant.collection_name}")
    print(f"Indexed: {len(succeeded)}/{len(results)}")
    for result in results:
        if result.success:
            print(f"  OK    {result.file_name}: {result.chunks} chunks")
        else:
            print(f"  FAIL  {result.file_name or '-'}: {result.error}")
    print(f"Records in index: {stats.total_record_count}")
    print("=" * 60)

    if output_path:
        output_data = {
            "succeeded": len(succeeded),
            "total": len(results),
            "records": stats.total_record_count,
            "results": [r.model_dump() for r in results],
        }
        output_path.write_text(json.dumps(output_data, indent=2))
        logger.info(f"Summary saved to {output_path}")

    return bool(succeeded)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Index a folder of PDFs",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--folder",
        type=Path,
        default=None,
        help="Folder containing PDFs (defaults to INDEXING_LOCAL_PDF_DIR)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save the summary JSON",
    )

    args = parser.parse_args()

    indexed = asyncio.run(index_folder(folder=args.folder, output_path=args.output))

    sys.exit(0 if indexed else 1)


if __name__ == "__main__":
    main()
