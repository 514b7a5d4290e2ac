"""Text-generation providers and factory."""

# Import providers first to trigger registration via decorators
from docrag.llm import anthropic_provider, gemini_provider, ollama_provider, openai_provider
from docrag.llm.factory import LLMFactory

__all__ = ["LLMFactory"]
