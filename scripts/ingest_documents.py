"""Script to ingest local files into a user's document library."""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

# Add the project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from docrag.core.config import get_config
from docrag.core.di_container import container
from docrag.core.exceptions import AppError
from docrag.core.logging import setup_logging
from docrag.rag.service import UploadedFile

mimetypes.add_type("text/markdown", ".md")


async def ingest_documents(user_id: str, paths: list[Path]) -> int:
    """Ingest the given files for a user."""
    config = get_config()
    setup_logging(log_level=config.log_level, json_format=False)

    uploads = []
    for path in paths:
        if not path.is_file():
            print(f"Skipping {path}: not a file")
            continue
        mime_type, _ = mimetypes.guess_type(path.name)
        uploads.append(UploadedFile(filename=path.name, content=path.read_bytes(), mime_type=mime_type))

    if not uploads:
        print("No files to ingest")
        return 1

    print(f"Ingesting {len(uploads)} file(s) into {config.store.backend} store...")

    try:
        rag_service = container.rag_service()
        outcomes = await rag_service.ingest_files(user_id, uploads)
    except AppError as e:
        print(f"Error ingesting documents: {e.message}")
        return 1

    for outcome in outcomes:
        if outcome.ok:
            print(
                f"  {outcome.filename}: {outcome.result.chunk_count} chunks "
                f"(document {outcome.result.document_id})"
            )
        else:
            print(f"  {outcome.filename}: FAILED - {outcome.error}")

    failed = sum(1 for outcome in outcomes if not outcome.ok)
    print(f"Ingested {len(outcomes) - failed}/{len(outcomes)} file(s)")
    return 0 if failed == 0 else 1


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--user-id", required=True, help="Owner of the ingested documents")
    parser.add_argument("paths", nargs="+", type=Path, help="Files to ingest")
    args = parser.parse_args()
    return asyncio.run(ingest_documents(args.user_id, args.paths))


if __name__ == "__main__":
    sys.exit(main())
