"""Text-generation provider factory."""

from docrag.core.config import LLMConfig
from docrag.core.protocols import TextGenerator
from docrag.core.registry import Registry


class LLMFactory(Registry):
    """Creates the ``complete(prompt)`` provider named by ``LLM_PROVIDER``.

    Providers register themselves with ``@LLMFactory.register("name")`` when
    ``docrag.llm`` is imported.
    """

    kind = "LLM provider"

    @classmethod
    def create(cls, config: LLMConfig) -> TextGenerator:
        return cls.lookup(config.provider)(config)

    @classmethod
    def available_providers(cls) -> list[str]:
        return cls.available()
