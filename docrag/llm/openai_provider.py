"""OpenAI LLM Provider."""

from langchain_openai import ChatOpenAI

from docrag.core.config import LLMConfig
from docrag.core.exceptions import ConfigurationError
from docrag.llm.base import ChatModelProvider
from docrag.llm.factory import LLMFactory


@LLMFactory.register("openai")
class OpenAIProvider(ChatModelProvider):
    """OpenAI API provider using langchain-openai."""

    name = "openai"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        if not config.openai_api_key:
            raise ConfigurationError("Missing OpenAI API key (LLM_OPENAI_API_KEY)")
        client_kwargs = {
            "model": config.model,
            "api_key": config.openai_api_key,
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "timeout": config.timeout_seconds,
        }
        if config.base_url:
            client_kwargs["openai_api_base"] = config.base_url
        self.client = ChatOpenAI(**client_kwargs)
