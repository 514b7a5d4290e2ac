"""Shared completion logic for LangChain chat-model providers."""

from typing import Any

from docrag.core.config import LLMConfig
from docrag.core.exceptions import LLMError
from docrag.core.logging import get_logger

logger = get_logger(__name__)


def content_to_text(content: Any) -> str:
    """Flatten a chat-model message content into plain text.

    Some models return a list of content blocks instead of a string.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


class ChatModelProvider:
    """Single-turn ``complete(prompt)`` over a LangChain chat model.

    Subclasses set ``name`` and build ``self.client`` in ``__init__``.
    """

    name = "base"

    def __init__(self, config: LLMConfig):
        self.config = config
        self.client: Any = None

    async def complete(self, prompt: str) -> str:
        """Send the prompt as one user message and return the reply text.

        Raises:
            LLMError: If the provider call fails
        """
        messages = [{"role": "user", "content": prompt}]
        try:
            response = await self.client.ainvoke(messages)
        except Exception as e:
            logger.error(
                "llm_completion_failed",
                provider=self.name,
                model=self.config.model,
                error=str(e),
            )
            raise LLMError(f"{self.name} completion failed: {e}", self.name) from e

        return content_to_text(response.content)
