"""Google Gemini LLM Provider."""

from langchain_google_genai import ChatGoogleGenerativeAI

from docrag.core.config import LLMConfig
from docrag.core.exceptions import ConfigurationError
from docrag.core.logging import get_logger
from docrag.llm.base import ChatModelProvider
from docrag.llm.factory import LLMFactory

logger = get_logger(__name__)


@LLMFactory.register("gemini")
class GeminiProvider(ChatModelProvider):
    """Google Generative AI provider using langchain-google-genai."""

    name = "gemini"

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        if not config.google_api_key:
            raise ConfigurationError("Missing Google API key (LLM_GOOGLE_API_KEY)")
        self.client = ChatGoogleGenerativeAI(
            model=config.model,
            google_api_key=config.google_api_key,
            temperature=config.temperature,
            max_output_tokens=config.max_tokens,
            timeout=config.timeout_seconds,
        )
        logger.info("gemini_provider_initialized", model=config.model)
