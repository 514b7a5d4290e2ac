"""Prompt construction for grounded answers."""

from collections.abc import Sequence

from docrag.documents.models import Message, SearchResult

CONTEXT_SEPARATOR = "\n\n---\n\n"

NO_CONTEXT_PROMPT = """The user asked a question but no relevant documents were found in their uploaded documents.
{history}
Question: {question}

Please respond by letting the user know that you couldn't find relevant information in their uploaded documents to answer this question. Suggest they upload relevant documents first, or rephrase their question."""

RAG_PROMPT = """You are a helpful document analysis assistant. Answer the user's question based ONLY on the provided document context below. If the context doesn't contain enough information to fully answer the question, say so clearly.

When citing information, reference the source document by name.

## Retrieved Document Context

{context}
{history}
## User Question

{question}

## Instructions
- Answer based ONLY on the information found in the document context above
- If multiple documents are relevant, synthesize information across them
- Cite which document(s) your answer comes from using [Source N] references
- If the context doesn't contain the answer, clearly state that
- Be concise but thorough
- Use markdown formatting for readability"""


def format_source_label(rank: int, result: SearchResult) -> str:
    """Label for the rank-th (1-based) source in the context block."""
    return (
        f"[Source {rank}: {result.filename} "
        f"(chunk {result.chunk_index + 1}, relevance: {result.similarity * 100:.1f}%)]"
    )


def build_context(results: Sequence[SearchResult]) -> str:
    """Concatenate labelled chunks in rank order."""
    return CONTEXT_SEPARATOR.join(
        f"{format_source_label(rank, result)}\n{result.content}"
        for rank, result in enumerate(results, start=1)
    )


def format_history(history: Sequence[Message]) -> str:
    """Render prior conversation turns as a prompt section (empty if none)."""
    if not history:
        return ""
    lines = [
        f"{'User' if message.role == 'user' else 'Assistant'}: {message.content}"
        for message in history
    ]
    return "\n## Conversation History\n\n" + "\n\n".join(lines) + "\n"


def build_prompt(
    question: str,
    results: Sequence[SearchResult],
    history: Sequence[Message] = (),
) -> str:
    """Build the generation prompt.

    With no retrieved chunks the prompt asks the model to say nothing relevant
    was found instead of answering.
    """
    if not results:
        return NO_CONTEXT_PROMPT.format(question=question, history=format_history(history))

    return RAG_PROMPT.format(
        context=build_context(results),
        history=format_history(history),
        question=question,
    )
