"""Anthropic LLM Provider."""

from langchain_anthropic import ChatAnthropic

from docrag.core.config import LLMConfig
from docrag.core.exceptions import ConfigurationError
from docrag.llm.base import ChatModelProvider
from docrag.llm.factory import LLMFactory


@LLMFactory.register("anthropic")
class AnthropicProvider(ChatModelProvider):
    """Anthropic API provider using langchain-anthropic.

    Supports custom base_url for Anthropic-compatible APIs.
    """

    name = "anthropic"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        if not config.anthropic_api_key:
            raise ConfigurationError("Missing Anthropic API key (LLM_ANTHROPIC_API_KEY)")
        client_kwargs = {
            "model": config.model,
            "api_key": config.anthropic_api_key,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "timeout": config.timeout_seconds,
        }
        if config.base_url:
            client_kwargs["anthropic_api_url"] = config.base_url
        self.client = ChatAnthropic(**client_kwargs)
