"""Tests for prompt construction."""

from docrag.documents.models import Message, SearchResult
from docrag.rag.prompts import CONTEXT_SEPARATOR, build_context, build_prompt


def make_result(chunk_id: str, filename: str, index: int, similarity: float, content: str):
    return SearchResult(
        chunk_id=chunk_id,
        document_id=f"doc-{filename}",
        filename=filename,
        content=content,
        chunk_index=index,
        similarity=similarity,
    )


class TestBuildContext:
    """Test cases for the context block."""

    def test_labels_and_separator(self):
        """Sources are numbered by rank with 1-based chunk numbers."""
        results = [
            make_result("c1", "a.pdf", 0, 0.9234, "First chunk."),
            make_result("c2", "b.md", 4, 0.5, "Second chunk."),
        ]

        context = build_context(results)

        assert context == (
            "[Source 1: a.pdf (chunk 1, relevance: 92.3%)]\nFirst chunk."
            + CONTEXT_SEPARATOR
            + "[Source 2: b.md (chunk 5, relevance: 50.0%)]\nSecond chunk."
        )


class TestBuildPrompt:
    """Test cases for the generation prompt."""

    def test_no_context_prompt(self):
        """Without results the prompt asks to report that nothing was found."""
        prompt = build_prompt("What is the refund window?", [])

        assert "no relevant documents were found" in prompt
        assert "What is the refund window?" in prompt
        assert "[Source" not in prompt

    def test_grounded_prompt(self):
        """With results the prompt carries context, question and instructions."""
        prompt = build_prompt(
            "What is the refund window?",
            [make_result("c1", "a.pdf", 0, 0.8, "Refunds within 30 days.")],
        )

        assert "## Retrieved Document Context" in prompt
        assert "Refunds within 30 days." in prompt
        assert "[Source N]" in prompt
        assert "ONLY" in prompt
        assert "## Conversation History" not in prompt

    def test_history_included(self):
        """Prior turns are rendered in order."""
        history = [
            Message(id="1", conversation_id="c", user_id="u", role="user", content="Hi there"),
            Message(id="2", conversation_id="c", user_id="u", role="assistant", content="Hello"),
        ]

        prompt = build_prompt(
            "And shipping?", [make_result("c1", "a.pdf", 0, 0.8, "Ships in 2 days.")], history
        )

        assert "## Conversation History" in prompt
        assert prompt.index("User: Hi there") < prompt.index("Assistant: Hello")

    def test_braces_in_question_preserved(self):
        """Question text is inserted verbatim."""
        prompt = build_prompt("What does {placeholder} mean?", [])

        assert "{placeholder}" in prompt
