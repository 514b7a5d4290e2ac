"""API routes for document ingestion, search and question answering."""

import time

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from docrag.api.schemas import (
    ConversationInfo,
    ConversationListResponse,
    DocumentDeleteResponse,
    DocumentInfo,
    DocumentListResponse,
    HealthResponse,
    IngestedDocument,
    IngestResponse,
    MessageInfo,
    MessageListResponse,
    QueryRequest,
    QueryResponse,
    SearchRequest,
    SearchResponse,
    SearchResultItem,
    SourceItem,
)
from docrag.auth.dependencies import CurrentUser
from docrag.core.config import AppConfig
from docrag.core.di_container import DIContainer
from docrag.core.exceptions import AppError
from docrag.core.logging import log_request
from docrag.llm import LLMFactory
from docrag.rag.retrieval import RetrievalEngine
from docrag.rag.service import RAGService, UploadedFile
from docrag.rag.synthesizer import AnswerSynthesizer
from docrag.store import StoreFactory

router = APIRouter()

# Snippet length for citations returned to the client
DISPLAY_SNIPPET_LENGTH = 300


@router.get("/health", response_model=HealthResponse)
@inject
async def health(
    config: AppConfig = Depends(Provide[DIContainer.config]),  # noqa: B008
) -> HealthResponse:
    """Report service status and the active providers."""
    return HealthResponse(
        status="ok",
        store_backend=config.store.backend,
        embedding_provider=config.embedding.provider,
        embedding_model=config.embedding.model,
        llm_provider=config.llm.provider,
        llm_model=config.llm.model,
        store_backends=StoreFactory.available_backends(),
        llm_providers=LLMFactory.available_providers(),
    )


@router.post("/rag/ingest", response_model=IngestResponse)
@inject
async def ingest_documents(
    user: CurrentUser,
    files: list[UploadFile] = File(...),  # noqa: B008
    config: AppConfig = Depends(Provide[DIContainer.config]),  # noqa: B008
    rag_service: RAGService = Depends(Provide[DIContainer.rag_service]),  # noqa: B008
) -> IngestResponse:
    """Upload and ingest documents (PDF, Markdown, plain text, DOCX).

    Each file is processed independently; failures are reported per file.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files provided")
    if len(files) > config.max_files_per_request:
        raise HTTPException(
            status_code=400,
            detail=f"At most {config.max_files_per_request} files can be uploaded at once",
        )

    max_bytes = config.max_upload_mb * 1024 * 1024
    uploads = [await _read_upload(file, max_bytes) for file in files]

    outcomes = await rag_service.ingest_files(user.id, uploads)

    documents = [
        IngestedDocument(
            document_id=outcome.result.document_id,
            filename=outcome.filename,
            chunk_count=outcome.result.chunk_count,
            total_tokens=outcome.result.total_tokens,
        )
        if outcome.result is not None
        else IngestedDocument(filename=outcome.filename, error=outcome.error)
        for outcome in outcomes
    ]
    return IngestResponse(
        documents=documents,
        total_ingested=sum(1 for outcome in outcomes if outcome.ok),
    )


@router.get("/rag/documents", response_model=DocumentListResponse)
@inject
async def list_documents(
    user: CurrentUser,
    rag_service: RAGService = Depends(Provide[DIContainer.rag_service]),  # noqa: B008
) -> DocumentListResponse:
    """List the user's ingested documents."""
    documents = await rag_service.list_documents(user.id)
    return DocumentListResponse(
        documents=[
            DocumentInfo(
                id=doc.id,
                filename=doc.filename,
                file_type=doc.file_type,
                file_size=doc.file_size,
                page_count=doc.page_count,
                metadata=doc.metadata,
                created_at=doc.created_at,
            )
            for doc in documents
        ]
    )


@router.delete("/rag/documents/{document_id}", response_model=DocumentDeleteResponse)
@inject
async def delete_document(
    document_id: str,
    user: CurrentUser,
    rag_service: RAGService = Depends(Provide[DIContainer.rag_service]),  # noqa: B008
) -> DocumentDeleteResponse:
    """Delete a document with its chunks."""
    await rag_service.delete_document(document_id, user.id)
    return DocumentDeleteResponse(document_id=document_id)


@router.post("/rag/search", response_model=SearchResponse)
@inject
async def search_documents(
    request: SearchRequest,
    user: CurrentUser,
    retrieval_engine: RetrievalEngine = Depends(Provide[DIContainer.retrieval_engine]),  # noqa: B008
) -> SearchResponse:
    """Vector search over the user's documents."""
    results = await retrieval_engine.search(
        query=request.query,
        user_id=user.id,
        document_ids=request.document_ids,
        match_count=request.match_count,
        similarity_threshold=request.similarity_threshold,
    )
    return SearchResponse(
        results=[
            SearchResultItem(
                chunk_id=r.chunk_id,
                document_id=r.document_id,
                filename=r.filename,
                content=r.content,
                chunk_index=r.chunk_index,
                similarity=r.similarity,
                document_metadata=r.document_metadata,
                chunk_metadata=r.chunk_metadata,
            )
            for r in results
        ],
        count=len(results),
    )


@router.post("/rag/query", response_model=QueryResponse)
@inject
async def query_documents(
    request: QueryRequest,
    user: CurrentUser,
    synthesizer: AnswerSynthesizer = Depends(Provide[DIContainer.synthesizer]),  # noqa: B008
) -> QueryResponse:
    """Answer a question from the user's documents, with citations."""
    start_time = time.perf_counter()

    try:
        result = await synthesizer.query(
            question=request.question,
            user_id=user.id,
            conversation_id=request.conversation_id,
            document_ids=request.document_ids,
            match_count=request.match_count,
        )
    except AppError as e:
        log_request(
            method="POST",
            path="/api/v1/rag/query",
            user_id=user.id,
            question=request.question,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            status="error",
            error=e.message,
        )
        raise

    log_request(
        method="POST",
        path="/api/v1/rag/query",
        user_id=user.id,
        question=request.question,
        answer=result.answer,
        source_count=len(result.sources),
        duration_ms=(time.perf_counter() - start_time) * 1000,
    )

    return QueryResponse(
        answer=result.answer,
        sources=[
            SourceItem(
                document_id=s.document_id,
                chunk_id=s.chunk_id,
                filename=s.filename,
                snippet=s.content[:DISPLAY_SNIPPET_LENGTH],
                similarity=s.similarity,
                chunk_index=s.chunk_index,
            )
            for s in result.sources
        ],
        conversation_id=result.conversation_id,
        message_id=result.message_id,
    )


@router.get("/rag/conversations", response_model=ConversationListResponse)
@inject
async def list_conversations(
    user: CurrentUser,
    rag_service: RAGService = Depends(Provide[DIContainer.rag_service]),  # noqa: B008
) -> ConversationListResponse:
    """List the user's RAG conversations."""
    conversations = await rag_service.list_conversations(user.id)
    return ConversationListResponse(
        conversations=[
            ConversationInfo(
                id=c.id,
                title=c.title,
                document_ids=c.document_ids,
                created_at=c.created_at,
                updated_at=c.updated_at,
            )
            for c in conversations
        ]
    )


@router.get("/rag/conversations/{conversation_id}/messages", response_model=MessageListResponse)
@inject
async def list_messages(
    conversation_id: str,
    user: CurrentUser,
    rag_service: RAGService = Depends(Provide[DIContainer.rag_service]),  # noqa: B008
) -> MessageListResponse:
    """Replay a conversation's messages in order."""
    messages = await rag_service.list_messages(conversation_id, user.id)
    return MessageListResponse(
        conversation_id=conversation_id,
        messages=[
            MessageInfo(
                id=m.id,
                role=m.role,
                content=m.content,
                sources=[SourceItem(**source.to_dict()) for source in m.sources],
                token_count=m.token_count,
                created_at=m.created_at,
            )
            for m in messages
        ],
    )


async def _read_upload(file: UploadFile, max_bytes: int) -> UploadedFile:
    """Read an upload without buffering more than one byte past ``max_bytes``."""
    filename = file.filename or "document"
    if file.size is not None and file.size > max_bytes:
        return UploadedFile(filename=filename, content=b"", mime_type=file.content_type, size=file.size)
    return UploadedFile(
        filename=filename,
        content=await file.read(max_bytes + 1),
        mime_type=file.content_type,
    )
