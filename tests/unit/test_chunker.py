"""Tests for the paragraph chunker."""

import pytest

from docrag.documents.chunker import ParagraphChunker, chunk_text


def make_paragraphs(count: int, length: int) -> list[str]:
    """Distinct paragraphs of exactly ``length`` characters."""
    return [(f"P{i} " + "x" * length)[:length] for i in range(count)]


class TestChunkText:
    """Test cases for chunk_text."""

    @pytest.mark.parametrize("text", ["", "   ", "\n\n  \n"])
    def test_empty_input_returns_no_chunks(self, text):
        """Empty and whitespace-only text yields no chunks."""
        assert chunk_text(text) == []

    def test_short_text_single_chunk(self):
        """Text shorter than chunk_size becomes one chunk."""
        chunks = chunk_text("Hello world.", chunk_size=100, overlap=10)

        assert len(chunks) == 1
        assert chunks[0].content == "Hello world."
        assert chunks[0].index == 0
        assert chunks[0].metadata == {"char_start": 0, "char_end": 12}

    def test_paragraphs_accumulate_until_size(self):
        """Small paragraphs are joined into one chunk."""
        text = "First paragraph.\n\nSecond paragraph.\n\nThird paragraph."
        chunks = chunk_text(text, chunk_size=1000, overlap=200)

        assert len(chunks) == 1
        assert chunks[0].content == text

    def test_three_large_paragraphs(self):
        """3000 characters with two breaks produce three overlapping chunks."""
        paragraphs = make_paragraphs(3, 999)
        text = "\n\n".join(paragraphs)
        chunks = chunk_text(text, chunk_size=1000, overlap=200)

        assert 3 <= len(chunks) <= 4
        assert [c.index for c in chunks] == list(range(len(chunks)))
        assert chunks[0].content == paragraphs[0]
        # Second chunk starts with the last 200 characters of the first
        assert chunks[1].content.startswith(paragraphs[0][-200:])
        assert chunks[1].content.endswith(paragraphs[1])

    def test_offsets_point_into_original_text(self):
        """With plain blank-line separators each chunk is a slice of the text."""
        text = "\n\n".join(make_paragraphs(6, 150))
        chunks = chunk_text(text, chunk_size=400, overlap=50)

        for chunk in chunks:
            assert text[chunk.char_start : chunk.char_end] == chunk.content

    def test_chunks_cover_whole_text(self):
        """Every non-whitespace character lies inside some chunk."""
        text = "\n\n".join(make_paragraphs(7, 230))
        chunks = chunk_text(text, chunk_size=500, overlap=100)

        covered = set()
        for chunk in chunks:
            covered.update(range(chunk.char_start, chunk.char_end))
        missing = [i for i, ch in enumerate(text) if not ch.isspace() and i not in covered]
        assert missing == []

    def test_soft_size_bound(self):
        """No chunk exceeds chunk_size plus one paragraph."""
        paragraphs = make_paragraphs(10, 300)
        text = "\n\n".join(paragraphs)
        chunks = chunk_text(text, chunk_size=1000, overlap=200)

        longest_paragraph = max(len(p) for p in paragraphs)
        assert all(len(c.content) <= 1000 + longest_paragraph for c in chunks)

    def test_oversized_paragraph_kept_whole(self):
        """A paragraph longer than chunk_size is not split when breaks exist."""
        big = "y" * 500
        text = f"intro\n\n{big}"
        chunks = chunk_text(text, chunk_size=100, overlap=20)

        assert any(big in c.content for c in chunks)

    def test_no_overlap_when_buffer_shorter_than_overlap(self):
        """A flushed buffer not longer than overlap is not repeated."""
        text = "short\n\n" + "z" * 120
        chunks = chunk_text(text, chunk_size=100, overlap=50)

        assert chunks[0].content == "short"
        assert chunks[1].content == "z" * 120

    def test_fixed_width_fallback_without_breaks(self):
        """Text without blank lines is sliced into overlapping windows."""
        text = "".join(chr(ord("a") + i % 26) for i in range(250))
        chunks = chunk_text(text, chunk_size=100, overlap=20)

        assert [c.metadata["char_start"] for c in chunks] == [0, 80, 160]
        assert chunks[-1].char_end == 250
        assert all(len(c.content) <= 100 for c in chunks)
        assert chunks[1].content[:20] == chunks[0].content[-20:]

    def test_fixed_width_skips_whitespace_windows(self):
        """All-whitespace windows produce no chunk."""
        text = "a" * 50 + " " * 200 + "b" * 50
        chunks = chunk_text(text, chunk_size=100, overlap=0)

        assert all(c.content.strip() for c in chunks)
        assert [c.index for c in chunks] == list(range(len(chunks)))

    def test_largest_overlap_stays_within_paragraph_bound(self):
        """At the maximum overlap no chunk exceeds chunk_size plus one paragraph."""
        text = "\n\n".join(make_paragraphs(4, 100))
        chunks = chunk_text(text, chunk_size=100, overlap=98)

        assert len(chunks) == 4
        assert all(len(c.content) <= 200 for c in chunks)

    @pytest.mark.parametrize(
        ("chunk_size", "overlap"),
        [(0, 0), (100, -1), (100, 99), (100, 100), (100, 150)],
    )
    def test_invalid_parameters(self, chunk_size, overlap):
        """Out-of-range size or overlap raises ValueError."""
        with pytest.raises(ValueError):
            chunk_text("text", chunk_size=chunk_size, overlap=overlap)


class TestParagraphChunker:
    """Test cases for the configured chunker."""

    def test_uses_configured_parameters(self):
        """Chunker delegates to chunk_text with its settings."""
        chunker = ParagraphChunker(chunk_size=100, overlap=10)
        text = "\n\n".join(make_paragraphs(4, 60))

        assert chunker.chunk(text) == chunk_text(text, chunk_size=100, overlap=10)

    def test_rejects_invalid_parameters(self):
        """Invalid settings fail at construction."""
        with pytest.raises(ValueError):
            ParagraphChunker(chunk_size=100, overlap=100)
