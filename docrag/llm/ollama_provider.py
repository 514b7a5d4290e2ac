"""Ollama LLM Provider for local models."""

from langchain_ollama import ChatOllama

from docrag.core.config import LLMConfig
from docrag.core.logging import get_logger
from docrag.llm.base import ChatModelProvider
from docrag.llm.factory import LLMFactory

logger = get_logger(__name__)


@LLMFactory.register("ollama")
class OllamaProvider(ChatModelProvider):
    """Ollama local LLM provider using langchain-ollama. No API key required."""

    name = "ollama"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        base_url = config.base_url or "http://localhost:11434"
        self.client = ChatOllama(
            model=config.model,
            base_url=base_url,
            temperature=config.temperature,
            num_predict=config.max_tokens,
        )
        logger.info("ollama_provider_initialized", model=config.model, base_url=base_url)
