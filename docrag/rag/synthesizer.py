"""Grounded answer synthesis with conversation persistence."""

from __future__ import annotations

from collections.abc import Sequence

from docrag.core.exceptions import NotFoundError, ValidationError
from docrag.core.logging import get_logger
from docrag.core.protocols import DocumentStore, TextGenerator
from docrag.documents.embeddings import estimate_token_count
from docrag.documents.models import (
    Conversation,
    Message,
    RAGAnswer,
    SearchResult,
    new_id,
)
from docrag.rag.prompts import build_prompt
from docrag.rag.retrieval import DEFAULT_SIMILARITY_THRESHOLD, RetrievalEngine

logger = get_logger(__name__)

DEFAULT_MATCH_COUNT = 8


class AnswerSynthesizer:
    """Answers questions from retrieved chunks and records the exchange."""

    def __init__(
        self,
        retrieval_engine: RetrievalEngine,
        store: DocumentStore,
        generator: TextGenerator,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        snippet_length: int = 200,
        title_length: int = 100,
        history_messages: int = 6,
    ):
        self._retrieval = retrieval_engine
        self._store = store
        self._generator = generator
        self._similarity_threshold = similarity_threshold
        self._snippet_length = snippet_length
        self._title_length = title_length
        self._history_messages = history_messages

    async def query(
        self,
        question: str,
        user_id: str,
        conversation_id: str | None = None,
        document_ids: Sequence[str] | None = None,
        match_count: int = DEFAULT_MATCH_COUNT,
    ) -> RAGAnswer:
        """Answer a question from the user's documents.

        Args:
            question: The user's question
            user_id: Owner of the documents and conversation
            conversation_id: Continue this conversation (a new one is created if None)
            document_ids: Restrict retrieval to these documents; defaults to the
                conversation's pinned documents
            match_count: Maximum number of chunks to retrieve

        Returns:
            RAGAnswer with the generated text, the retrieved chunks, and the
            conversation and assistant message ids

        Raises:
            ValidationError: On an empty question or user id
            NotFoundError: If conversation_id does not belong to the user
            StoreError: If the exchange could not be saved; anything written
                during this call is removed first
        """
        if not user_id:
            raise ValidationError("user_id is required")
        if not question or not question.strip():
            raise ValidationError("Question must not be empty")

        conversation: Conversation | None = None
        history: list[Message] = []
        if conversation_id:
            conversation = await self._store.get_conversation(conversation_id, user_id)
            if conversation is None:
                raise NotFoundError(f"Conversation {conversation_id} not found", "conversation")
            if self._history_messages > 0:
                history = await self._store.list_messages(
                    conversation.id, user_id, limit=self._history_messages
                )

        scope = list(document_ids) if document_ids else None
        if scope is None and conversation is not None and conversation.document_ids:
            scope = list(conversation.document_ids)

        results = await self._retrieval.search(
            query=question,
            user_id=user_id,
            document_ids=scope,
            match_count=match_count,
            similarity_threshold=self._similarity_threshold,
        )

        prompt = build_prompt(question, results, history)
        answer = await self._generator.complete(prompt)

        conversation_id, message_id = await self._record_exchange(
            question=question,
            answer=answer,
            user_id=user_id,
            conversation=conversation,
            document_ids=document_ids,
            results=results,
        )

        logger.info(
            "rag_query_completed",
            user_id=user_id,
            conversation_id=conversation_id,
            sources=len(results),
            grounded=bool(results),
        )
        return RAGAnswer(
            answer=answer,
            sources=results,
            conversation_id=conversation_id,
            message_id=message_id,
        )

    async def _record_exchange(
        self,
        question: str,
        answer: str,
        user_id: str,
        conversation: Conversation | None,
        document_ids: Sequence[str] | None,
        results: list[SearchResult],
    ) -> tuple[str, str]:
        """Persist the user and assistant messages, creating the conversation if needed."""
        created_conversation_id: str | None = None
        written_message_ids: list[str] = []

        try:
            if conversation is None:
                conversation = Conversation(
                    id=new_id(),
                    user_id=user_id,
                    title=question[: self._title_length],
                    document_ids=list(document_ids or []),
                )
                created_conversation_id = await self._store.insert_conversation(conversation)
                conversation.id = created_conversation_id

            user_message = Message(
                id=new_id(),
                conversation_id=conversation.id,
                user_id=user_id,
                role="user",
                content=question,
                token_count=estimate_token_count(question),
            )
            written_message_ids.append(await self._store.insert_message(user_message))

            assistant_message = Message(
                id=new_id(),
                conversation_id=conversation.id,
                user_id=user_id,
                role="assistant",
                content=answer,
                sources=[result.to_source(self._snippet_length) for result in results],
                token_count=estimate_token_count(answer),
            )
            message_id = await self._store.insert_message(assistant_message)
            written_message_ids.append(message_id)

            await self._store.update_conversation_timestamp(conversation.id)
        except BaseException as e:
            await self._rollback(written_message_ids, created_conversation_id, e)
            raise

        return conversation.id, message_id

    async def _rollback(
        self,
        message_ids: list[str],
        conversation_id: str | None,
        error: BaseException,
    ) -> None:
        try:
            for message_id in reversed(message_ids):
                await self._store.delete_message(message_id)
            if conversation_id is not None:
                await self._store.delete_conversation(conversation_id)
        except Exception as rollback_error:
            logger.error(
                "exchange_rollback_failed",
                conversation_id=conversation_id,
                error=str(rollback_error),
                original_error=str(error),
            )
            return

        logger.warning(
            "exchange_rolled_back",
            conversation_id=conversation_id,
            messages_removed=len(message_ids),
            error=str(error),
        )
